"""Chronological ordering keys and calendar windows."""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum


class Window(str, Enum):
    """Calendar window an audit scope replays over."""

    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    QUARTER = "QUARTER"
    YEAR = "YEAR"
    ALL = "ALL"


# date.weekday() numbering: Monday is 0, Sunday is 6
SUNDAY = 6


def as_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC so naive and aware values compare."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """Midnight at the start of ``day``."""
    return datetime.combine(day, time.min)


def movement_sort_key(movement) -> tuple:
    """Total order for movements: effective time, then insertion sequence."""
    return (movement.effective_at, movement.sequence)


def trade_sort_key(trade) -> tuple:
    """Order for trades: trade date, entry time, then id."""
    return (trade.trade_date, trade.entry_time or time.min, trade.id or "")


def window_bounds(window: Window, today: date, week_start: int = SUNDAY) -> tuple[date, date]:
    """Get the inclusive date range of the window containing ``today``.

    Args:
        window: Calendar window.
        today: Reference date.
        week_start: Weekday a week starts on (0=Monday ... 6=Sunday).

    Returns:
        Tuple of (first day, last day), both inclusive.
    """
    if window == Window.DAY:
        return today, today
    if window == Window.WEEK:
        start = today - timedelta(days=(today.weekday() - week_start) % 7)
        return start, start + timedelta(days=6)
    if window == Window.MONTH:
        last = calendar.monthrange(today.year, today.month)[1]
        return today.replace(day=1), today.replace(day=last)
    if window == Window.QUARTER:
        first_month = ((today.month - 1) // 3) * 3 + 1
        last_month = first_month + 2
        last = calendar.monthrange(today.year, last_month)[1]
        return date(today.year, first_month, 1), date(today.year, last_month, last)
    if window == Window.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if window == Window.ALL:
        return date.min, date.max
    raise ValueError(f"Unknown window: {window}")
