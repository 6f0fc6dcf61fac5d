"""Async database engine and session. PostgreSQL (or SQLite) via DATABASE_URL."""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from helpdesk.config import get_settings

logger = logging.getLogger(__name__)

# SQLAlchemy 2.0 style
class Base(DeclarativeBase):
    pass


def _get_engine_url() -> str:
    return get_settings().database_url


def _safe_url(url: str) -> str:
    """Hide credentials when logging the connection string."""
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.split('@', 1)[1]}"


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": get_settings().debug, "future": True}
    if url.startswith("sqlite"):
        # File-backed SQLite: no pooling, connections never outlive their event loop
        kwargs["poolclass"] = NullPool
    return kwargs


engine = create_async_engine(_get_engine_url(), **_engine_kwargs(_get_engine_url()))

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def execute_query(
    session: AsyncSession,
    sql: str,
    params: Optional[dict[str, Any]] = None,
) -> list[dict[str, Any]]:
    """Run a parameterized SELECT and return its rows as dicts."""
    start = time.perf_counter()
    result = await session.execute(text(sql), params or {})
    rows = [dict(r) for r in result.mappings().all()]
    logger.debug(
        "executed query text=%r duration_ms=%.1f rows=%s",
        sql,
        (time.perf_counter() - start) * 1000,
        len(rows),
    )
    return rows


async def init_db() -> None:
    """Create tables if they don't exist. Retries on connection errors."""
    # Models must be imported so their tables are registered on Base.metadata
    from helpdesk.storage import models  # noqa: F401

    logger.info("Initializing database: %s", _safe_url(_get_engine_url()))
    last_error = None
    for attempt in range(1, 6):
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            return
        except Exception as e:
            last_error = e
            err_name = type(e).__name__
            if "InvalidPassword" in err_name or "password authentication" in str(e).lower():
                logger.error(
                    "PostgreSQL authentication failed. Check the credentials in DATABASE_URL."
                )
                raise
            logger.warning("DB init attempt %s/5 failed: %s", attempt, err_name)
            if attempt < 5:
                await asyncio.sleep(2.0 * attempt)
    raise last_error


async def close_db() -> None:
    await engine.dispose()
