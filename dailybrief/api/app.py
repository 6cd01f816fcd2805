"""FastAPI server for the Daily Brief backend"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dailybrief import config
from dailybrief.api.routes.health import router as health_router
from dailybrief.api.routes.ingest import router as ingest_router
from dailybrief.api.routes.issues import router as issues_router
from dailybrief.infrastructure.database import RepositoryError
from dailybrief.observability.logging import configure_logging, get_logger
from dailybrief.observability.telemetry import counter
from dailybrief.service import BriefingService, build_service

# Load environment variables from .env file
load_dotenv()
configure_logging()

logger = get_logger(__name__)

ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("DAILYBRIEF_ALLOWED_ORIGINS", "").split(",") if origin.strip()]

if config.ENV == "development":
    ALLOWED_ORIGINS.extend(["http://localhost:3000", "http://127.0.0.1:3000"])


def _startup_service() -> BriefingService:
    try:
        logger.info("Initializing database schema...")
        service = build_service()
    except RepositoryError as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    logger.info("Database ready (%s)", service.repository.db.describe())
    return service


def create_app(service: BriefingService | None = None) -> FastAPI:
    """
    Build the application.

    When ``service`` is None it is built on startup and closed on shutdown;
    an injected service belongs to the caller.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = app.state.service is None
        if owned:
            app.state.service = _startup_service()
        try:
            yield
        finally:
            if owned:
                app.state.service.close()
                app.state.service = None

    app = FastAPI(title="Daily Brief API", version=config.APP_VERSION, lifespan=lifespan)
    app.state.service = service

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return field names only, not validation internals.

        Side Effects:
            - Logs the full validation errors
            - Increments api.validation_errors
        """
        logger.warning("Validation error on %s: %s", request.url.path, exc.errors())
        counter("api.validation_errors")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": "Invalid request format. Please check your request and try again.",
                "error_count": len(exc.errors()),
                "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
            },
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(health_router)
    app.include_router(ingest_router)
    app.include_router(issues_router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("dailybrief.api.app:app", host=config.API_HOST, port=config.API_PORT)


if __name__ == "__main__":
    main()
