import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from backoffice import __version__
from backoffice.adapters.sqlite.migrator import SQLiteMigrator
from backoffice.api.deps import get_rules, get_settings
from backoffice.api.errors import register_exception_handlers
from backoffice.api.routes import audit, time

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Fail fast on bad rules or a broken schema
    get_rules()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    SQLiteMigrator(settings.db_path).run_migrations()
    logger.info("Back office ready, database at %s", settings.db_path)

    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Back Office API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(time.router, prefix="/api/time", tags=["Time"])
    app.include_router(audit.router, prefix="/api/audit", tags=["Audit"])
    register_exception_handlers(app)

    @app.get("/health")
    def health_check() -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "service": "api"}

    return app


app = create_app()
