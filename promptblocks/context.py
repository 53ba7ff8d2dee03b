"""
RenderContext - the read-only evaluation environment of one render call.

This module provides the context model blocks are rendered against:
named variables, conversation history, per-block toggle state, and the
injectable capabilities (tokenizer, clock, random number generator) that
the evaluator's macros and filters read from.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from .types import BlockId, MessageRole


Clock = Callable[[], datetime]


class Tokenizer(Protocol):
    """Protocol for tokenizer implementations used by ``token_size``."""

    def count_tokens(self, text: str) -> int:
        """Count tokens in text"""
        ...


def system_clock() -> datetime:
    """Return the current instant in UTC."""
    return datetime.now(timezone.utc)


def fixed_clock(instant: datetime) -> Clock:
    """Build a clock that always returns ``instant``.

    Naive datetimes are read as UTC.

    Example:
        >>> clock = fixed_clock(datetime(2024, 9, 12, 21, 14, 15))
        >>> clock().isoformat()
        '2024-09-12T21:14:15+00:00'
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)

    def clock() -> datetime:
        return instant

    return clock


@dataclass(frozen=True)
class HistoryEntry:
    """One prior conversation turn.

    Attributes:
        name: Display name of the speaker.
        role: Role the turn was produced under.
        content: Text of the turn.
        char_id: Optional id of the character who spoke.
    """
    name: str
    role: MessageRole
    content: str
    char_id: Optional[str] = None

    def to_template(self) -> dict[str, Any]:
        """Mapping exposed to templates as ``turn`` or an item of ``history``."""
        return {
            "name": self.name,
            "char_name": self.name,
            "char_id": self.char_id,
            "role": self.role.value,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "HistoryEntry":
        """Create a HistoryEntry from a dictionary.

        Raises:
            KeyError: If ``content`` is missing.
            ValueError: If ``role`` is not a known message role.
        """
        return cls(
            name=data.get("name", data.get("char_name", "")),
            role=MessageRole(data.get("role", MessageRole.USER.value)),
            content=data["content"],
            char_id=data.get("char_id"),
        )


@dataclass(frozen=True)
class ToggleState:
    """Per-block runtime gating and parameter values, keyed by block identity."""
    enabled: Mapping[BlockId, bool] = field(default_factory=dict)
    values: Mapping[BlockId, Any] = field(default_factory=dict)

    def is_enabled(self, block_id: BlockId) -> bool:
        """Whether the block is switched on; absent ids are off."""
        return bool(self.enabled.get(block_id, False))

    def value_of(self, block_id: BlockId) -> Any:
        return self.values.get(block_id)


@dataclass(frozen=True)
class RenderContext:
    """Evaluation environment for one render call.

    A RenderContext is never mutated by rendering. Rendering the same block
    against the same context twice yields the same output, except where the
    ``random`` and ``roll`` filters or the ``now`` macro read from ``rng``
    and ``clock``; inject a seeded ``random.Random`` and a fixed clock to
    make those deterministic.

    Attributes:
        variables: Arbitrary named values available to templates.
        history: Conversation turns, oldest first.
        toggle: Toggle gating state for ToggleBlock instances.
        tokenizer: Optional token counter used by ``token_size``.
        clock: Callable returning the current instant.
        rng: Random number generator for ``random`` and ``roll``.

    Example:
        context = RenderContext(
            variables={"char": "John", "description": "cool guy"},
            clock=fixed_clock(datetime(2024, 9, 12, 21, 14, 15)),
            rng=random.Random(7),
        )
    """
    variables: Mapping[str, Any] = field(default_factory=dict)
    history: Sequence[HistoryEntry] = ()
    toggle: ToggleState = field(default_factory=ToggleState)
    tokenizer: Optional[Tokenizer] = None
    clock: Clock = system_clock
    rng: random.Random = field(default_factory=random.Random)

    def __post_init__(self) -> None:
        # Freeze the caller's containers so templates and filters cannot
        # mutate them mid-render.
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))
        object.__setattr__(self, "history", tuple(self.history or ()))

    def history_for_template(self, entries: Optional[Sequence[HistoryEntry]] = None) -> list[dict[str, Any]]:
        """Project history entries into the mappings templates iterate over."""
        source = self.history if entries is None else entries
        return [entry.to_template() for entry in source]
