"""Month-key helpers shared by the matrix services."""

from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_month_key(value: str) -> date:
    """Return the first day of the month named by ``YYYY-MM`` or ``YYYY-MM-DD``."""

    text = (value or "").strip()
    for fmt in ("%Y-%m", "%Y-%m-%d"):
        try:
            parsed = datetime.strptime(text, fmt).date()
        except ValueError:
            continue
        return date(parsed.year, parsed.month, 1)
    raise ValueError(f"Invalid month key: {value!r}")


def normalize_month_key(value: str) -> str:
    return parse_month_key(value).strftime("%Y-%m")


def month_bounds(month_key: str) -> tuple[date, date]:
    first = parse_month_key(month_key)
    last_day = calendar.monthrange(first.year, first.month)[1]
    return first, date(first.year, first.month, last_day)


def month_index(value: date) -> int:
    return value.year * 12 + (value.month - 1)


def clamp_day(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def month_label(month_key: str) -> str:
    try:
        return parse_month_key(month_key).strftime("%b %Y")
    except ValueError:
        return month_key
