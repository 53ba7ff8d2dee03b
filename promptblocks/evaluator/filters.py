"""
Built-in filters available to block templates.

Every filter receives the RenderContext first, then the piped value, then
its declared arguments. Filters read randomness, time and token counts only
through the context so renders stay reproducible when the caller injects a
seeded RNG and a fixed clock.
"""

from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Callable, Mapping

from jinja2 import Undefined

from ..context import RenderContext
from .dice import DiceExpression
from .errors import EvaluationError
from .relative_time import humanize_duration, parse_instant, relative_time

Filter = Callable[..., Any]


def _is_missing(value: Any) -> bool:
    return value is None or isinstance(value, Undefined)


def _require_bool(filter_name: str, argument: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise EvaluationError(
            f"Filter '{filter_name}' expects '{argument}' to be a boolean, "
            f"got {type(value).__name__}",
            filter_name=filter_name,
        )
    return value


def _instant(filter_name: str, value: Any) -> datetime:
    try:
        return parse_instant(value)
    except ValueError as e:
        raise EvaluationError(f"Filter '{filter_name}': {e}", filter_name=filter_name) from e


def date_from(context: RenderContext, value: Any, compare: Any, suppress_suffix: bool = False) -> str:
    """Relative time from ``compare`` back to the piped date ("a year ago")."""
    _require_bool("date_from", "suppress_suffix", suppress_suffix)
    if _is_missing(value):
        return ""
    return relative_time(
        _instant("date_from", value),
        _instant("date_from", compare),
        suppress_suffix,
    )


def date_from_now(context: RenderContext, value: Any, suppress_suffix: bool = False) -> str:
    """Like ``date_from`` with the context clock as the compare instant."""
    _require_bool("date_from_now", "suppress_suffix", suppress_suffix)
    if _is_missing(value):
        return ""
    return relative_time(_instant("date_from_now", value), context.clock(), suppress_suffix)


def date_to(context: RenderContext, value: Any, compare: Any, suppress_suffix: bool = False) -> str:
    """Relative time from the piped date forward to ``compare`` ("in a year")."""
    _require_bool("date_to", "suppress_suffix", suppress_suffix)
    if _is_missing(value):
        return ""
    return relative_time(
        _instant("date_to", compare),
        _instant("date_to", value),
        suppress_suffix,
    )


def date_to_now(context: RenderContext, value: Any, suppress_suffix: bool = False) -> str:
    """Like ``date_to`` with the context clock as the compare instant."""
    _require_bool("date_to_now", "suppress_suffix", suppress_suffix)
    if _is_missing(value):
        return ""
    return relative_time(context.clock(), _instant("date_to_now", value), suppress_suffix)


def date_to_relative(context: RenderContext, value: Any) -> str:
    """Shorthand for ``date_from_now`` with the suffix ("2 hours ago")."""
    return date_from_now(context, value)


def duration_to_relative(context: RenderContext, value: Any, with_suffix: bool = False) -> str:
    """Humanize a ``timedelta`` or a number of seconds ("2 hours")."""
    _require_bool("duration_to_relative", "with_suffix", with_suffix)
    if _is_missing(value):
        return ""
    if isinstance(value, timedelta):
        duration = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        duration = timedelta(seconds=value)
    else:
        raise EvaluationError(
            f"Filter 'duration_to_relative' expects a duration or seconds, got {type(value).__name__}",
            filter_name="duration_to_relative",
        )
    return humanize_duration(duration, with_suffix)


def random_choice(context: RenderContext, value: Any) -> Any:
    """Pick one element of an array uniformly at random."""
    if _is_missing(value):
        return ""
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise EvaluationError(
            f"Filter 'random' expects an array, got {type(value).__name__}",
            filter_name="random",
        )
    options = list(value)
    if not options:
        raise EvaluationError("Filter 'random' needs at least one option", filter_name="random")
    return context.rng.choice(options)


def roll(context: RenderContext, value: Any) -> Any:
    """Roll dice written as ``"<count>d<sides>"`` and return the total."""
    if _is_missing(value):
        return ""
    if not isinstance(value, str):
        raise EvaluationError(
            f"Filter 'roll' expects a dice expression string, got {type(value).__name__}",
            filter_name="roll",
        )
    try:
        dice = DiceExpression.parse(value)
    except ValueError as e:
        raise EvaluationError(f"Filter 'roll': {e}", filter_name="roll") from e
    return dice.roll(context.rng)


def token_size(context: RenderContext, value: Any) -> int:
    """Count tokens of the piped text with the context tokenizer."""
    if context.tokenizer is None:
        raise EvaluationError(
            "Filter 'token_size' requires a tokenizer in the render context",
            filter_name="token_size",
        )
    text = "" if _is_missing(value) else str(value)
    return context.tokenizer.count_tokens(text)


FILTERS: Mapping[str, Filter] = MappingProxyType({
    "date_from": date_from,
    "date_from_now": date_from_now,
    "date_to": date_to,
    "date_to_now": date_to_now,
    "date_to_relative": date_to_relative,
    "duration_to_relative": duration_to_relative,
    "random": random_choice,
    "roll": roll,
    "token_size": token_size,
})
