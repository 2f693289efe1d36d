"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from gluco_tracker.api.dosing import router as dosing_router
from gluco_tracker.app_logging import configure_logging
from gluco_tracker.containers import AppContainer
from gluco_tracker.domain.entries import InvalidNutritionValueError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.session.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(dosing_router)

    @app.exception_handler(InvalidNutritionValueError)
    async def invalid_nutrition_value(
        request: Request, exc: InvalidNutritionValueError
    ) -> JSONResponse:
        logger.warning("Rejected nutrition value on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
