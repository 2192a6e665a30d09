"""
Centralized timezone management.

Application timestamps are IST (Indian Standard Time). Order dates are stored
as naive UTC (MongoDB convention) and mapped onto company-local calendar days
with the helpers below.
"""

from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from typing import Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# IST timezone definition
IST = ZoneInfo("Asia/Kolkata")

DAY_FORMAT = "%Y-%m-%d"


def get_ist_now() -> datetime:
    """
    Get current datetime in IST timezone.

    Returns:
        datetime: Current time in IST (timezone-aware)

    Example:
        >>> now = get_ist_now()
        >>> print(now.tzinfo)
        Asia/Kolkata
    """
    return datetime.now(tz=IST)


def resolve_zone(tz_name: str | None) -> ZoneInfo:
    """Return the ZoneInfo for tz_name, falling back to IST for unknown names."""
    if not tz_name:
        return IST
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return IST


def to_naive_utc(dt: datetime) -> datetime:
    """
    Normalize a datetime to naive UTC for storage and range queries.

    Naive input is assumed to already be UTC.

    Example:
        >>> to_naive_utc(datetime(2026, 3, 10, 11, 30, tzinfo=IST))
        datetime.datetime(2026, 3, 10, 6, 0)
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(dt_timezone.utc).replace(tzinfo=None)


def parse_day(value: str) -> date:
    """
    Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If value is not a valid calendar day
    """
    return datetime.strptime(value, DAY_FORMAT).date()


def to_company_day(value: Union[datetime, date, str], tz_name: str | None) -> str:
    """
    Map an order date onto the company-local calendar day (YYYY-MM-DD).

    Args:
        value: naive-UTC or aware datetime, a date, or a YYYY-MM-DD string
        tz_name: IANA timezone of the company

    Examples:
        >>> to_company_day(datetime(2026, 3, 10, 20, 0), "Asia/Kolkata")
        '2026-03-11'
        >>> to_company_day("2026-03-10", "Asia/Kolkata")
        '2026-03-10'
    """
    if isinstance(value, str):
        return parse_day(value).strftime(DAY_FORMAT)
    if isinstance(value, datetime):
        aware = value if value.tzinfo else value.replace(tzinfo=dt_timezone.utc)
        return aware.astimezone(resolve_zone(tz_name)).strftime(DAY_FORMAT)
    return value.strftime(DAY_FORMAT)


def company_day_bounds(day: str, tz_name: str | None) -> Tuple[datetime, datetime]:
    """
    Naive-UTC [start, end) window covering a company-local calendar day.

    Example:
        >>> company_day_bounds("2026-03-10", "Asia/Kolkata")
        (datetime.datetime(2026, 3, 9, 18, 30), datetime.datetime(2026, 3, 10, 18, 30))
    """
    zone = resolve_zone(tz_name)
    local_start = datetime.combine(parse_day(day), time.min, tzinfo=zone)
    local_end = datetime.combine(parse_day(day) + timedelta(days=1), time.min, tzinfo=zone)
    return to_naive_utc(local_start), to_naive_utc(local_end)
