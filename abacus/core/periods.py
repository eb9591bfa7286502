import os
import re
from datetime import date
from datetime import datetime
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel


PERIOD_PATTERN = re.compile(r"^(\d+)([ymd])$", re.IGNORECASE)
PREFER_TIMEZONE_PATTERN = re.compile(
    r'timezone=(?:"([^"]+)"|([^\s,;]+))', re.IGNORECASE
)


class Period(BaseModel):
    """Inclusive local date range used to filter command aggregations."""

    start_date: date | None = None
    end_date: date | None = None
    timezone: str = "UTC"


def is_valid_timezone(name: str) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def system_timezone() -> str:
    """Return the process timezone name, falling back to UTC."""

    name = os.environ.get("TZ", "").lstrip(":")
    if is_valid_timezone(name):
        return name
    return "UTC"


def parse_timezone_from_prefer(prefer_header: str) -> str | None:
    """Extract `timezone=<name>` (quoted or bare) from a Prefer header."""

    match = PREFER_TIMEZONE_PATTERN.search(prefer_header)
    if not match:
        return None
    return match.group(1) or match.group(2)


def today_in(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


def parse_period(period_text: str, timezone: str) -> Period | None:
    """Parse shorthand such as `1y`, `6m` or `30d` into a range ending today.

    Returns None for malformed input and for zero or negative amounts.
    """

    match = PERIOD_PATTERN.match(period_text.strip())
    if not match:
        return None

    value = int(match.group(1))
    unit = match.group(2).lower()
    if value <= 0:
        return None

    end_date = today_in(timezone)
    if unit == "y":
        start_date = end_date - relativedelta(years=value)
    elif unit == "m":
        start_date = end_date - relativedelta(months=value)
    else:
        start_date = end_date - relativedelta(days=value)

    return Period(start_date=start_date, end_date=end_date, timezone=timezone)
