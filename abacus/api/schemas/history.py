from datetime import date
from datetime import datetime

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class DailyCount(BaseModel):
    """Number of commands run on a single local calendar day."""

    model_config = ConfigDict(frozen=True)

    date: date
    count: int = Field(ge=0)


class TimeOfDayStats(BaseModel):
    """Average commands per active day for each hour 0..23."""

    hourly: list[float]


class CommandStats(BaseModel):
    """Totals response for the root endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    total: int
    last_command_at: datetime | None = Field(default=None, alias="lastCommandAt")


class HealthStatus(BaseModel):
    status: str
    database: str
