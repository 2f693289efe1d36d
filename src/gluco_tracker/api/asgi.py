"""ASGI entrypoint for the gluco tracker API."""

from gluco_tracker.api.app import create_app
from gluco_tracker.containers import build_container

app = create_app(build_container())
