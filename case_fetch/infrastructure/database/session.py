"""SQLAlchemy database session and engine configuration."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from case_fetch.config import get_settings
from case_fetch.domain.entities.fetch_config import CONCURRENCY_RANGE


def _get_async_url(url: str) -> str:
    """Convert a sync SQLAlchemy URL to an async one."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _engine_options(async_url: str) -> dict:
    """Pool sizing for server databases.

    Every dispatcher slot writes its outcomes through its own session, so the
    pool must cover the largest configured concurrency on top of API traffic.
    SQLite keeps SQLAlchemy's default pool.
    """
    if async_url.startswith("sqlite"):
        return {}
    return {
        "pool_size": max(settings.db_pool_size, CONCURRENCY_RANGE[1] + 1),
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
    }


settings = get_settings()
_async_url = _get_async_url(settings.database_url)

engine = create_async_engine(
    _async_url,
    echo=(settings.log_level_sql.upper() in ("DEBUG", "INFO")),
    future=True,
    **_engine_options(_async_url),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency — yields an async DB session per request."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
