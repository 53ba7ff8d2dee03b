"""
Built-in macros: zero-argument values resolved when a template renders.
"""
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Mapping

from ..context import RenderContext

Macro = Callable[[RenderContext], Any]


def format_iso(instant: datetime) -> str:
    """Format an instant as ISO-8601 UTC with millisecond precision.

    Example:
        >>> format_iso(datetime(2024, 9, 12, 21, 14, 15, tzinfo=timezone.utc))
        '2024-09-12T21:14:15.000Z'
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    return (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"
        f".{instant.microsecond // 1000:03d}Z"
    )


def now(context: RenderContext) -> str:
    """Current instant read from the context clock."""
    return format_iso(context.clock())


MACROS: Mapping[str, Macro] = MappingProxyType({
    "now": now,
})
