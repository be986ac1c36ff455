"""propdesk - FastAPI Application."""

from fastapi import FastAPI

from propdesk import __version__
from propdesk.config import get_settings
from propdesk.core.lifespan import get_db_pool, lifespan
from propdesk.core.log import configure_logging
from propdesk.routers import accounts

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title="propdesk",
    description="Prop-firm account risk & payout accounting",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(accounts.router)


@app.get("/health")
async def health() -> dict:
    """Liveness probe. Reports whether metrics are served from Postgres."""
    return {
        "status": "ok",
        "version": __version__,
        "database": "connected" if get_db_pool() is not None else "not_configured",
    }


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "propdesk",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
