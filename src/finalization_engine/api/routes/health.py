"""Health and readiness endpoints for the finalization API."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import func, literal, select
from sqlalchemy.exc import SQLAlchemyError

from finalization_engine.api.dependencies import DbSession
from finalization_engine.api.schemas import CamelModel
from finalization_engine.config import get_settings
from finalization_engine.models import (
    AttendanceException,
    LeavePayrollTransaction,
    PeriodFinalization,
    TimesheetSubmission,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

# Tables a commit writes to; the service cannot finalize without them.
COMMIT_TABLES = (
    PeriodFinalization,
    LeavePayrollTransaction,
    TimesheetSubmission,
    AttendanceException,
)


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    version: str
    finalizations: int | None = None


class ReadinessResponse(CamelModel):
    status: str
    missing_tables: list[str] = []


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession) -> HealthResponse:
    """Database reachability plus the number of stored finalizations.

    A reachable database without the finalization schema reports degraded.
    """
    finalizations = None
    try:
        finalizations = await db.scalar(
            select(func.count()).select_from(PeriodFinalization)
        )
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)

    healthy = finalizations is not None
    return HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        database="healthy" if healthy else "unhealthy",
        version=get_settings().engine_version,
        finalizations=finalizations,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """Ready once every table the commit path writes to can be queried."""
    missing: list[str] = []
    for model in COMMIT_TABLES:
        try:
            await db.execute(select(literal(1)).select_from(model).limit(1))
        except SQLAlchemyError:
            logger.warning("Table %s is not queryable", model.__tablename__, exc_info=True)
            await db.rollback()
            missing.append(model.__tablename__)

    if missing:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not_ready", missing_tables=missing)
    return ReadinessResponse(status="ready")


@router.get("/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
