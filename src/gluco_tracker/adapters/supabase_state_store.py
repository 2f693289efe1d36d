"""Supabase key-value store for whole-document application state."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

STATE_TABLE = "app_state"


@dataclass
class SupabaseStateStore:
    """Reads and overwrites JSON documents stored under named keys."""

    client: Client
    table_name: str = STATE_TABLE

    def get(self, key: str) -> object | None:
        """Return the document stored under ``key``."""
        response = (
            self.client.table(self.table_name)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("value")

    def put(self, key: str, value: object) -> None:
        """Overwrite the document stored under ``key``."""
        self.client.table(self.table_name).upsert(
            {
                "key": key,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="key",
        ).execute()
