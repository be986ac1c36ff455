"""Application lifespan management - startup and shutdown logic."""

import traceback
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import asyncpg
import structlog
from fastapi import FastAPI

from propdesk import __version__
from propdesk.config import Settings, get_settings
from propdesk.repositories.accounts import (
    InMemoryAccountRepository,
    PostgresAccountRepository,
)
from propdesk.services.accounting import MetricsCache, policy_from_statuses
from propdesk.services.accounts import AccountService

logger = structlog.get_logger(__name__)

# Global clients - accessed by routers
_db_pool: Optional[asyncpg.Pool] = None
_account_service: Optional[AccountService] = None


def get_db_pool() -> Optional[asyncpg.Pool]:
    """Get the database connection pool."""
    return _db_pool


def get_account_service() -> Optional[AccountService]:
    """Get the account service wired at startup."""
    return _account_service


def set_account_service(service: Optional[AccountService]) -> None:
    """Replace the account service (used by tests)."""
    global _account_service
    _account_service = service


async def _init_database(settings: Settings) -> Optional[asyncpg.Pool]:
    """Initialize asyncpg connection pool."""
    if not settings.database_url:
        logger.warning(
            "Database connection not configured. Set DATABASE_URL in .env; using in-memory repository"
        )
        return None

    try:
        pool = await asyncpg.create_pool(
            settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=10,
            command_timeout=30,
        )
        logger.info(
            "Database pool initialized",
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        return pool
    except Exception as e:
        logger.error(
            "Failed to initialize database pool - falling back to in-memory repository",
            error=str(e),
            traceback=traceback.format_exc(),
        )
        return None


def build_account_service(settings: Settings, pool=None) -> AccountService:
    """Wire repository, cache and payout policy from settings."""
    repo = PostgresAccountRepository(pool) if pool is not None else InMemoryAccountRepository()
    return AccountService(
        repo,
        cache=MetricsCache(max_size=settings.metrics_cache_size),
        policy=policy_from_statuses(settings.payout_included_statuses),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    global _db_pool

    settings = get_settings()
    logger.info(
        "Starting propdesk",
        version=__version__,
        host=settings.service_host,
        port=settings.service_port,
        default_timezone=settings.default_timezone,
    )

    _db_pool = await _init_database(settings)
    set_account_service(build_account_service(settings, _db_pool))

    yield

    logger.info("Shutting down propdesk")
    if _db_pool is not None:
        await _db_pool.close()
        _db_pool = None
    set_account_service(None)
