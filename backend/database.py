"""
Order store: async SQLAlchemy engine, session factory and request-scoped sessions.

One AsyncSession per request. Services add/flush; routes commit once the whole
command (status write, status-change log, notification) has been staged, so a
failure anywhere in between leaves nothing behind.
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def async_database_url(url: str) -> str:
    """sqlite:///… → sqlite+aiosqlite:///…; other URLs pass through."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def _connect_args(url: str) -> dict:
    # Concurrent status writes on SQLite wait for the lock instead of failing fast
    if url.startswith("sqlite"):
        return {"timeout": settings.db_busy_timeout_seconds}
    return {}


# ── Engine ──────────────────────────────────────────────────────────

_async_url = async_database_url(settings.database_url)

engine = create_async_engine(
    _async_url,
    echo=settings.sql_echo,
    connect_args=_connect_args(_async_url),
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Helpers ─────────────────────────────────────────────────────────

async def init_db() -> None:
    """Create missing tables. Called once on startup."""
    import db_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Order store ready ({engine.url.get_backend_name()})")


async def ping(db: AsyncSession) -> None:
    """Round-trip a trivial statement; raises if the store is unreachable."""
    await db.execute(text("SELECT 1"))


async def get_db() -> AsyncSession:
    """
    FastAPI dependency: one session per request.

    Anything not committed by the route when it raises is rolled back.
    """
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
