"""
ToggleBlock - a block included only while its toggle is switched on.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..context import RenderContext
from ..evaluator import Evaluator
from ..types import BlockId
from .base import ConfigurationError, Renderable

logger = logging.getLogger(__name__)


class ToggleType(str, Enum):
    """How a toggle is presented to the user."""
    SINGLE = "single"


@dataclass(frozen=True)
class ToggleBlock(Renderable):
    """Block gated by ``context.toggle.enabled[id]``.

    The id is assigned once at creation; toggle state is stored externally
    under it, so it must never change for the lifetime of the block. When
    the toggle is off or absent the block contributes nothing. When on, the
    toggle's parameter value is available to the template as
    ``toggle_value``.

    Attributes:
        toggle_type: Presentation of the toggle.
        id: Stable identity the toggle state is keyed by.
    """
    toggle_type: ToggleType = ToggleType.SINGLE
    id: BlockId = field(default_factory=BlockId.generate)

    block_type = "toggle"
    provided_variables = frozenset({"toggle_value"})

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.toggle_type, ToggleType):
            raise ConfigurationError(
                f"Block '{self.name}' has invalid toggle type: {self.toggle_type!r}",
                field="toggle_type",
            )
        if not isinstance(self.id, BlockId):
            raise ConfigurationError(f"Block '{self.name}' id must be a BlockId", field="id")

    def _render_contents(self, context: RenderContext, evaluator: Evaluator) -> list[str]:
        if not context.toggle.is_enabled(self.id):
            logger.debug(f"Skipping disabled toggle block '{self.name}' ({self.id})")
            return []
        return [self._evaluate(context, evaluator, {"toggle_value": context.toggle.value_of(self.id)})]

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["toggleType"] = self.toggle_type.value
        data["id"] = self.id.value
        return data
