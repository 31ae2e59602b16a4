"""Database utility functions and common queries."""

from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from quotes.db.session import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Usage in FastAPI endpoints:
        @router.get("/health")
        async def health(db: AsyncSession = Depends(get_db)):
            ...

    The session is committed on success, rolled back on error and always
    closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_health(session: AsyncSession) -> dict:
    """Check if database is accessible and responsive.

    Returns:
        dict with 'healthy' boolean and optional 'error' message
    """
    try:
        result = await session.execute(text("SELECT 1"))
        result.scalar()
        return {"healthy": True}
    except Exception as e:
        return {"healthy": False, "error": str(e)}
