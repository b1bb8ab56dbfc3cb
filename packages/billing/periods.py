"""
Billing period helpers.

A period is a UTC calendar month keyed by its first day. Every caller derives
the key through ``period_start_for`` so metering and billing always agree.
"""

import re
from datetime import date, datetime, timedelta, timezone

from common.core.exceptions import ValidationError

_MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def period_start_for(now: datetime) -> date:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return date(now.year, now.month, 1)


def next_period_start(period_start: date) -> date:
    if period_start.month == 12:
        return date(period_start.year + 1, 1, 1)
    return date(period_start.year, period_start.month + 1, 1)


def previous_period_start(period_start: date) -> date:
    if period_start.month == 1:
        return date(period_start.year - 1, 12, 1)
    return date(period_start.year, period_start.month - 1, 1)


def period_end_for(period_start: date) -> date:
    """Last day of the period (inclusive)."""
    return next_period_start(period_start) - timedelta(days=1)


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` into a period key."""
    match = _MONTH_PATTERN.match(value or "")
    if not match:
        raise ValidationError("month must be in YYYY-MM format", month=value)
    return date(int(match.group(1)), int(match.group(2)), 1)


def format_month(period_start: date) -> str:
    return period_start.strftime("%Y-%m")
