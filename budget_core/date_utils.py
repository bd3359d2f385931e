"""
Calendar-date helpers.

Transaction dates are calendar days (``YYYY-MM-DD``), never instants, so
everything here works on ``datetime.date`` and never touches time zones.
"""

from __future__ import annotations

import logging
from calendar import monthrange
from datetime import date, datetime
from typing import Optional

logger = logging.getLogger(__name__)

YMD_FORMAT = "%Y-%m-%d"
FALLBACK_FORMATS = ("%Y/%m/%d", "%d/%m/%Y", "%Y%m%d")
SUPPORTED_PERIODS = {"monthly", "yearly"}


def parse_local_date(value: date | str | None, today: date | None = None) -> Optional[date]:
    """
    Parse a calendar date without raising.

    ``YYYY-MM-DD`` (optionally followed by a ``T`` time part) is the
    expected format. Anything else is logged and parsed best-effort with a
    few common layouts; ``None`` is returned if nothing fits. An empty value
    means the current day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not value.strip():
        return today or date.today()

    text = extract_ymd(value.strip())
    try:
        return datetime.strptime(text, YMD_FORMAT).date()
    except ValueError:
        logger.warning("Invalid date format: %r. Expected YYYY-MM-DD", value)

    for fmt in FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.strip()).date()
    except ValueError:
        logger.warning("Could not parse date %r; ignoring it", value)
        return None


def extract_ymd(value: str) -> str:
    return value.split("T")[0]


def is_in_period(value: date, year: int, month: int | None, period: str = "monthly") -> bool:
    normalized = validate_period(period)
    if value.year != year:
        return False
    if normalized == "yearly":
        return True
    return value.month == month


def period_id(year: int, month: int | None, period: str = "monthly") -> str:
    """``YYYY-MM`` for monthly periods, ``YYYY`` for yearly ones."""
    if validate_period(period) == "yearly":
        return f"{year:04d}"
    return f"{year:04d}-{month:02d}"


def period_bounds(year: int, month: int | None, period: str = "monthly") -> tuple[date, date]:
    if validate_period(period) == "yearly":
        return date(year, 1, 1), date(year, 12, 31)
    return date(year, month, 1), end_of_month(date(year, month, 1))


def validate_period(period: str) -> str:
    normalized = period.strip().lower()
    if normalized not in SUPPORTED_PERIODS:
        raise ValueError("Only monthly or yearly periods are supported.")
    return normalized


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=monthrange(value.year, value.month)[1])


def is_last_day_of_period(value: date, period: str = "monthly") -> bool:
    if validate_period(period) == "yearly":
        return value.month == 12 and value.day == 31
    return value == end_of_month(value)


def add_months(start_date: date, months: int, anchor_day: int | None = None) -> date:
    """Shift by whole months, clamping the anchor day to the target month's length."""
    total_month = start_date.month - 1 + months
    year = start_date.year + total_month // 12
    month = total_month % 12 + 1
    last_day = monthrange(year, month)[1]
    day = min(anchor_day or start_date.day, last_day)
    return date(year, month, day)
