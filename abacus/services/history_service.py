from collections import Counter
from collections.abc import Iterator
from datetime import datetime
from datetime import time
from datetime import timedelta
from datetime import UTC
from zoneinfo import ZoneInfo

from sqlalchemy import Select
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy.orm import Session

from abacus.api.schemas.history import CommandStats
from abacus.api.schemas.history import DailyCount
from abacus.api.schemas.history import TimeOfDayStats
from abacus.core.periods import Period
from abacus.models import HISTORY_TAG
from abacus.models import History
from abacus.models import StoreRecord


NANOSECONDS = 1_000_000_000


def utc_bounds(period: Period) -> tuple[datetime | None, datetime | None]:
    """Return `[lower, upper)` UTC instants covering the period's local days."""

    zone = ZoneInfo(period.timezone)
    lower = upper = None
    if period.start_date is not None:
        lower = datetime.combine(period.start_date, time.min, zone).astimezone(UTC)
    if period.end_date is not None:
        next_day = period.end_date + timedelta(days=1)
        upper = datetime.combine(next_day, time.min, zone).astimezone(UTC)
    return lower, upper


def _history_query(columns, period: Period) -> Select:
    lower, upper = utc_bounds(period)
    query = select(*columns).where(History.deleted_at.is_(None))
    if lower is not None:
        query = query.where(History.timestamp >= lower.replace(tzinfo=None))
    if upper is not None:
        query = query.where(History.timestamp < upper.replace(tzinfo=None))
    return query


def _store_query(columns, period: Period) -> Select:
    lower, upper = utc_bounds(period)
    query = select(*columns).where(StoreRecord.tag == HISTORY_TAG)
    if lower is not None:
        query = query.where(StoreRecord.timestamp >= _to_nanoseconds(lower))
    if upper is not None:
        query = query.where(StoreRecord.timestamp < _to_nanoseconds(upper))
    return query


def _to_nanoseconds(moment: datetime) -> int:
    return int(moment.timestamp()) * NANOSECONDS


def _from_nanoseconds(value: int) -> datetime:
    return datetime.fromtimestamp(value / NANOSECONDS, tz=UTC)


def command_times(db: Session, period: Period) -> Iterator[datetime]:
    """Yield the local time of every command in the period, from both tables."""

    zone = ZoneInfo(period.timezone)
    for timestamp in db.scalars(_history_query([History.timestamp], period)):
        yield timestamp.replace(tzinfo=UTC).astimezone(zone)
    for timestamp in db.scalars(_store_query([StoreRecord.timestamp], period)):
        yield _from_nanoseconds(timestamp).astimezone(zone)


def get_commands_per_day(db: Session, period: Period) -> list[DailyCount]:
    """Count commands per local calendar day, ascending by date."""

    aggregated_counts = Counter(moment.date() for moment in command_times(db, period))
    return [
        DailyCount(date=day, count=count)
        for day, count in sorted(aggregated_counts.items())
    ]


def get_time_of_day_stats(db: Session, period: Period) -> TimeOfDayStats:
    """Average commands per active day for each local hour.

    If 50 commands ran at 9am over 10 active days, `hourly[9]` is 5.0.
    """

    hour_counts: Counter[int] = Counter()
    active_days = set()
    for moment in command_times(db, period):
        hour_counts[moment.hour] += 1
        active_days.add(moment.date())

    if not active_days:
        return TimeOfDayStats(hourly=[0.0] * 24)
    return TimeOfDayStats(
        hourly=[round(hour_counts[hour] / len(active_days), 2) for hour in range(24)]
    )


def get_stats(db: Session, period: Period) -> CommandStats:
    """Total commands in the period and the time of the most recent one."""

    history_total, history_last = db.execute(
        _history_query([func.count(History.id), func.max(History.timestamp)], period)
    ).one()
    store_total, store_last = db.execute(
        _store_query(
            [func.count(StoreRecord.id), func.max(StoreRecord.timestamp)], period
        )
    ).one()

    candidates = []
    if history_last is not None:
        candidates.append(history_last.replace(tzinfo=UTC))
    if store_last is not None:
        candidates.append(_from_nanoseconds(store_last))

    return CommandStats(
        total=history_total + store_total,
        last_command_at=max(candidates) if candidates else None,
    )
