import re
from datetime import date

from fastapi import HTTPException
from fastapi import Query
from fastapi import Request

from abacus.core.periods import Period
from abacus.core.periods import parse_period


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_query_date(raw_value: str) -> date | None:
    if not DATE_PATTERN.match(raw_value):
        return None
    try:
        return date.fromisoformat(raw_value)
    except ValueError:
        return None


def parse_bool(raw_value: str | None, default: bool) -> bool:
    """Query-string boolean: `true` and `1` are true, anything else is false."""

    if raw_value is None:
        return default
    return raw_value.lower() in {"true", "1"}


def get_period(
    request: Request,
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    period: str | None = Query(default=None),
) -> Period:
    """Build the requested period from `start`/`end` or the `period` shorthand.

    Raises:
        HTTPException: If a date or the period shorthand is malformed, or the
            range is reversed.
    """

    timezone = request.state.timezone
    start = start or None
    end = end or None

    if start is None and end is None and period:
        parsed = parse_period(period, timezone)
        if parsed is None:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Invalid period format. Expected <number><y|m|d>, got: {period}"
                ),
            )
        return parsed

    start_date = end_date = None
    if start is not None:
        start_date = parse_query_date(start)
        if start_date is None:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid start date format. Expected YYYY-MM-DD, got: {start}",
            )
    if end is not None:
        end_date = parse_query_date(end)
        if end_date is None:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid end date format. Expected YYYY-MM-DD, got: {end}",
            )
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=400, detail="Start date must be before or equal to end date"
        )

    return Period(start_date=start_date, end_date=end_date, timezone=timezone)
