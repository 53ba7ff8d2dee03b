"""
HistoryBlock - a block that projects conversation history into messages.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence

from ..context import HistoryEntry, RenderContext
from ..evaluator import Evaluator
from .base import ConfigurationError, Renderable

logger = logging.getLogger(__name__)


class HistoryRole(str, Enum):
    """How selected history entries map onto output messages.

    MESSAGE renders the template once per entry, with the entry bound to
    ``turn``. MERGE renders the template once over all selected entries.
    """
    MESSAGE = "message"
    MERGE = "merge"


@dataclass(frozen=True)
class HistoryBlock(Renderable):
    """Block rendered against ``context.history``.

    Entries are selected with ``history[start:end]``; with
    ``count_from_end`` the range counts back from the newest entry. Output
    always keeps history order, oldest first. No history means no output.

    Attributes:
        history_role: Projection of entries onto messages.
        start: First selected index, or None for the beginning.
        end: Index after the last selected entry, or None for the rest.
        count_from_end: Count ``start``/``end`` from the newest entry.

    Example:
        # The last two turns, one message each
        block = HistoryBlock(
            name="recent",
            role=MessageRole.USER,
            template="{{ turn.char_name }}: {{ turn.content }}",
            start=0,
            end=2,
            count_from_end=True,
        )
    """
    history_role: HistoryRole = HistoryRole.MESSAGE
    start: Optional[int] = None
    end: Optional[int] = None
    count_from_end: bool = False

    block_type = "history"
    provided_variables = frozenset({"turn"})

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.history_role, HistoryRole):
            raise ConfigurationError(
                f"Block '{self.name}' has invalid history role: {self.history_role!r}",
                field="history_role",
            )
        for field_name in ("start", "end"):
            value = getattr(self, field_name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int) or value < 0):
                raise ConfigurationError(
                    f"Block '{self.name}' {field_name} must be a non-negative integer",
                    field=field_name,
                )
        # An end of 0 counts as unset here; it still selects nothing
        if self.start is None and self.end:
            raise ConfigurationError("Start is required if end is provided", field="start")
        if self.start and self.end and self.start >= self.end:
            raise ConfigurationError("Start must be less than end", field="start")

    def select_history(self, history: Sequence[HistoryEntry]) -> list[HistoryEntry]:
        """Apply the configured range to ``history``, keeping oldest first."""
        entries = list(history)
        if self.count_from_end:
            entries.reverse()
        entries = entries[self.start:self.end]
        if self.count_from_end:
            entries.reverse()
        return entries

    def _render_contents(self, context: RenderContext, evaluator: Evaluator) -> list[str]:
        selected = self.select_history(context.history)
        if not selected:
            logger.debug(f"No history selected for block '{self.name}'")
            return []

        turns = context.history_for_template(selected)
        if self.history_role is HistoryRole.MERGE:
            return [self._evaluate(context, evaluator, {"history": turns})]
        return [
            self._evaluate(context, evaluator, {"history": turns, "turn": turn})
            for turn in turns
        ]

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "historyRole": self.history_role.value,
            "start": self.start,
            "end": self.end,
            "countFromEnd": self.count_from_end,
        })
        return data
