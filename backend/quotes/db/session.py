"""Async database session and engine configuration."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from quotes.config import settings
from quotes.models.base import Base


def enable_sqlite_write_locking(engine: AsyncEngine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    The driver's own deferred BEGIN lets two readers both hold a shared lock
    and then deadlock when each tries to write. Taking the write lock up
    front makes concurrent transactions queue on the busy timeout instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    # SQLite doesn't support pool_size / max_overflow / pool_pre_ping
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(url, echo=echo)
        enable_sqlite_write_locking(sqlite_engine)
        return sqlite_engine

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=settings.DB_POOL_RECYCLE_SECONDS,
        pool_pre_ping=True,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(bind: AsyncEngine) -> None:
    """Create all tables that don't exist yet."""
    # Import models so they register with Base.metadata
    from quotes.models import Like, Quote  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

async_session_factory = build_session_factory(engine)
