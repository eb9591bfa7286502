from datetime import date

import pytest

from abacus.core.periods import is_valid_timezone
from abacus.core.periods import parse_period
from abacus.core.periods import parse_timezone_from_prefer
from abacus.core.periods import system_timezone


@pytest.fixture
def fixed_today(monkeypatch: pytest.MonkeyPatch) -> date:
    today = date(2024, 3, 31)
    monkeypatch.setattr("abacus.core.periods.today_in", lambda timezone: today)
    return today


def test_parse_period_days(fixed_today: date) -> None:
    period = parse_period("30d", "UTC")

    assert period is not None
    assert period.end_date == fixed_today
    assert (period.end_date - period.start_date).days == 30
    assert period.timezone == "UTC"


def test_parse_period_months_clamp_to_month_end(fixed_today: date) -> None:
    period = parse_period("1m", "UTC")

    assert period is not None
    assert period.start_date == date(2024, 2, 29)


def test_parse_period_years(fixed_today: date) -> None:
    period = parse_period("1y", "UTC")

    assert period is not None
    assert period.start_date == date(2023, 3, 31)


def test_parse_period_is_case_insensitive(fixed_today: date) -> None:
    assert parse_period("6M", "UTC") == parse_period("6m", "UTC")


@pytest.mark.parametrize("raw_value", ["invalid", "1x", "abc", "1", "y", "-1d", "0d", "0y"])
def test_parse_period_rejects_malformed_or_non_positive(raw_value: str) -> None:
    assert parse_period(raw_value, "UTC") is None


def test_parse_period_uses_today_in_timezone() -> None:
    period = parse_period("1d", "America/Los_Angeles")

    assert period is not None
    assert period.timezone == "America/Los_Angeles"
    assert (period.end_date - period.start_date).days == 1


def test_parse_timezone_from_prefer_header() -> None:
    assert parse_timezone_from_prefer("timezone=America/Los_Angeles") == "America/Los_Angeles"
    assert parse_timezone_from_prefer('return=minimal, Timezone="Europe/Oslo"') == "Europe/Oslo"
    assert parse_timezone_from_prefer("return=minimal") is None


def test_is_valid_timezone() -> None:
    assert is_valid_timezone("Asia/Tokyo")
    assert not is_valid_timezone("Mars/Olympus_Mons")
    assert not is_valid_timezone("")


def test_system_timezone_falls_back_to_utc(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TZ", "Nowhere/Special")
    assert system_timezone() == "UTC"

    monkeypatch.setenv("TZ", "Europe/Oslo")
    assert system_timezone() == "Europe/Oslo"
