"""Date expression resolution.

Resolves the bracketed date part of a command (``[recent]``,
``[last 7 days]``, ``[2024-01-01 to 2024-01-31]`` ...) into an inclusive
range of local wall-clock datetimes. Day boundaries follow the caller's
local clock; no timezone normalisation is applied.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta

from mail_intent.exceptions import DateResolutionError
from mail_intent.models import DateRange

_ISO_DATE = r"\d{4}-\d{2}-\d{2}"
_LAST_DAYS = re.compile(r"last\s+(\d+)\s+days?")
_DATE_SPAN = re.compile(rf"({_ISO_DATE})\s+to\s+({_ISO_DATE})")
_SINGLE_DATE = re.compile(_ISO_DATE)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time(0, 0, 0))


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59))


def to_local_naive(moment: datetime) -> datetime:
    """Express an aware datetime on the local wall clock, dropping tzinfo."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def _parse_iso_date(value: str, label: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as exc:
        raise DateResolutionError(f"invalid {label} date: {value}") from exc


def _days(start: date, end: date) -> DateRange:
    if start > end:
        raise DateResolutionError(
            f"start date {start.isoformat()} is after end date {end.isoformat()}"
        )
    return DateRange(start=start_of_day(start), end=end_of_day(end))


def _recent(expr: str, today: date) -> DateRange | None:
    if expr == "recent":
        return _days(today - timedelta(days=1), today)
    return None


def _today(expr: str, today: date) -> DateRange | None:
    if expr == "today":
        return _days(today, today)
    return None


def _yesterday(expr: str, today: date) -> DateRange | None:
    if expr == "yesterday":
        yesterday = today - timedelta(days=1)
        return _days(yesterday, yesterday)
    return None


def _last_n_days(expr: str, today: date) -> DateRange | None:
    match = _LAST_DAYS.fullmatch(expr)
    if match is None:
        return None
    return _days(today - timedelta(days=int(match.group(1))), today)


def _date_span(expr: str, today: date) -> DateRange | None:
    match = _DATE_SPAN.fullmatch(expr)
    if match is None:
        return None
    start = _parse_iso_date(match.group(1), "start")
    end = _parse_iso_date(match.group(2), "end")
    return _days(start, end)


def _single_date(expr: str, today: date) -> DateRange | None:
    if _SINGLE_DATE.fullmatch(expr) is None:
        return None
    day = _parse_iso_date(expr, "single")
    return _days(day, day)


# Tried in order; the first resolver returning a range wins.
_RESOLVERS: tuple[Callable[[str, date], DateRange | None], ...] = (
    _recent,
    _today,
    _yesterday,
    _last_n_days,
    _date_span,
    _single_date,
)


def resolve(expr: str, now: datetime | None = None) -> DateRange:
    """Resolve a date expression into an inclusive date range.

    Args:
        expr: The expression without its surrounding brackets.
        now: Reference time. Defaults to the current local time.

    Returns:
        DateRange: Range from 00:00:00 of the first day to 23:59:59 of the last.

    Raises:
        DateResolutionError: If the expression is not recognised or names an
            impossible date.
    """

    normalized = expr.strip().lower()
    today = to_local_naive(now).date() if now is not None else datetime.now().date()

    for resolver in _RESOLVERS:
        resolved = resolver(normalized, today)
        if resolved is not None:
            return resolved

    raise DateResolutionError(f"unrecognized date format: {normalized}")
