"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotes.db.utils import check_database_health
from quotes.dependencies import get_db
from quotes.schemas import HealthCheckResponse

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Return service health status.

    Returns "ok" when the database answers, otherwise "degraded" with the
    error in the database field.
    """
    health = await check_database_health(db)
    db_status = "ok" if health["healthy"] else f"error: {health.get('error')}"

    return HealthCheckResponse(
        status="ok" if health["healthy"] else "degraded",
        database=db_status,
        services={"database": db_status},
    )
