"""
PlainBlock - a block that renders its template once.
"""
from dataclasses import dataclass

from ..context import RenderContext
from ..evaluator import Evaluator
from .base import Renderable


@dataclass(frozen=True)
class PlainBlock(Renderable):
    """Template-only block contributing at most one message."""

    block_type = "plain"

    def _render_contents(self, context: RenderContext, evaluator: Evaluator) -> list[str]:
        return [self._evaluate(context, evaluator)]
