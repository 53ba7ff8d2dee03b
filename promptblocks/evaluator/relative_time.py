"""
Relative time phrasing for the date filters.

Turns the difference between two instants into English phrases such as
"a year ago", "in 10 years" or "a few seconds". Thresholds and wording
follow the conventions of the dayjs ``relativeTime`` plugin so phrases match
what JavaScript front ends show for the same dates.
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Optional


@dataclass(frozen=True)
class _Threshold:
    key: str
    limit: Optional[int]
    unit: Optional[str] = None


# Evaluated in order; a threshold with a unit recomputes the difference in
# that unit, one without reuses the previous unit.
THRESHOLDS: tuple[_Threshold, ...] = (
    _Threshold("s", 44, "second"),
    _Threshold("m", 89),
    _Threshold("mm", 44, "minute"),
    _Threshold("h", 89),
    _Threshold("hh", 21, "hour"),
    _Threshold("d", 35),
    _Threshold("dd", 25, "day"),
    _Threshold("M", 45),
    _Threshold("MM", 10, "month"),
    _Threshold("y", 17),
    _Threshold("yy", None, "year"),
)

PHRASES: dict[str, str] = {
    "s": "a few seconds",
    "m": "a minute",
    "mm": "%d minutes",
    "h": "an hour",
    "hh": "%d hours",
    "d": "a day",
    "dd": "%d days",
    "M": "a month",
    "MM": "%d months",
    "y": "a year",
    "yy": "%d years",
}

FUTURE = "in %s"
PAST = "%s ago"


def parse_instant(value: Any) -> datetime:
    """Coerce a template value into an aware datetime.

    Accepts ``datetime`` and ``date`` objects and ISO-8601 strings with or
    without a time part. Values without an offset are read as UTC.

    Raises:
        ValueError: If the value is not a date or cannot be parsed.
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid date: '{value}'") from None
    else:
        raise ValueError(f"Expected a date or ISO-8601 string, got {type(value).__name__}")

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def _add_months(instant: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = instant.month - 1 + months
    year = instant.year + month_index // 12
    month = month_index % 12 + 1
    day = min(instant.day, calendar.monthrange(year, month)[1])
    return instant.replace(year=year, month=month, day=day)


def _month_diff(a: datetime, b: datetime) -> float:
    """Fractional months from ``b`` to ``a`` (positive when ``a`` is later)."""
    if a.day < b.day:
        return -_month_diff(b, a)
    whole = (b.year - a.year) * 12 + (b.month - a.month)
    anchor = _add_months(a, whole)
    behind = b < anchor
    anchor2 = _add_months(a, whole - 1 if behind else whole + 1)
    span = (anchor - anchor2) if behind else (anchor2 - anchor)
    return -(whole + (b - anchor) / span) or 0.0


def diff(a: datetime, b: datetime, unit: str) -> float:
    """Signed difference ``a - b`` expressed in ``unit``."""
    if unit == "year":
        return _month_diff(a, b) / 12
    if unit == "month":
        return _month_diff(a, b)
    seconds = (a - b).total_seconds()
    if unit == "day":
        return seconds / 86400
    if unit == "hour":
        return seconds / 3600
    if unit == "minute":
        return seconds / 60
    return seconds


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _phrase(delta: Callable[[str], float]) -> tuple[str, bool]:
    """Run the threshold table; ``delta`` maps a unit to a signed difference."""
    result = 0.0
    phrase = ""
    for index, threshold in enumerate(THRESHOLDS):
        if threshold.unit:
            result = delta(threshold.unit)
        amount = _round_half_up(abs(result))
        if threshold.limit is None or amount <= threshold.limit:
            key = threshold.key
            if amount <= 1 and index > 0:
                key = THRESHOLDS[index - 1].key
            phrase = PHRASES[key].replace("%d", str(amount))
            break
    return phrase, result > 0


def relative_time(later: datetime, earlier: datetime, suppress_suffix: bool = False) -> str:
    """Describe ``later - earlier`` as a relative phrase.

    A positive difference reads as future ("in a year"), zero or negative
    as past ("a year ago").

    Args:
        later: Minuend instant.
        earlier: Subtrahend instant.
        suppress_suffix: Drop "in"/"ago" and return the bare amount.

    Example:
        >>> relative_time(parse_instant("1999-01-01"), parse_instant("2000-01-01"))
        'a year ago'
    """
    phrase, is_future = _phrase(lambda unit: diff(later, earlier, unit))
    if suppress_suffix:
        return phrase
    return (FUTURE if is_future else PAST).replace("%s", phrase)


def humanize_duration(duration: timedelta, with_suffix: bool = False) -> str:
    """Describe a duration, e.g. ``timedelta(hours=2)`` -> "2 hours".

    Months and years are approximated as 30 and 365 days.
    """
    seconds = duration.total_seconds()

    def delta(unit: str) -> float:
        if unit == "year":
            return seconds / (365 * 86400)
        if unit == "month":
            return seconds / (30 * 86400)
        if unit == "day":
            return seconds / 86400
        if unit == "hour":
            return seconds / 3600
        if unit == "minute":
            return seconds / 60
        return seconds

    phrase, is_future = _phrase(delta)
    if not with_suffix:
        return phrase
    return (FUTURE if is_future else PAST).replace("%s", phrase)
