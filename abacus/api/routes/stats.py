from fastapi import APIRouter
from fastapi import Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from abacus.api.schemas.history import CommandStats
from abacus.api.schemas.history import DailyCount
from abacus.api.schemas.history import HealthStatus
from abacus.api.schemas.history import TimeOfDayStats
from abacus.core.periods import Period
from abacus.core.query import get_period
from abacus.db import check_connection
from abacus.db import engine
from abacus.db import get_db
from abacus.services.history_service import get_commands_per_day
from abacus.services.history_service import get_stats
from abacus.services.history_service import get_time_of_day_stats


router = APIRouter()


@router.get("/health", response_model=HealthStatus)
def health() -> JSONResponse:
    """Report database connectivity; 503 when the database is unreachable."""

    is_healthy = check_connection(engine)
    return JSONResponse(
        status_code=200 if is_healthy else 503,
        content={
            "status": "healthy" if is_healthy else "unhealthy",
            "database": "connected" if is_healthy else "disconnected",
        },
    )


@router.get("/", response_model=CommandStats)
def total_commands(
    period: Period = Depends(get_period), db: Session = Depends(get_db)
) -> CommandStats:
    """Return the total number of commands and the latest command time."""

    return get_stats(db, period)


@router.get("/history")
def commands_per_day(
    period: Period = Depends(get_period), db: Session = Depends(get_db)
) -> list[DailyCount]:
    """Return command counts per day, ascending by date."""

    return get_commands_per_day(db, period)


@router.get("/time-of-day")
def time_of_day(
    period: Period = Depends(get_period), db: Session = Depends(get_db)
) -> TimeOfDayStats:
    return get_time_of_day_stats(db, period)
