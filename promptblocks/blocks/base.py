"""
Base classes for prompt blocks.

Provides the Renderable abstract base class that every block variant
implements, and the ConfigurationError raised when a block is built with
invalid variant-specific settings.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional

from ..context import RenderContext
from ..evaluator import EvaluationError, Evaluator, default_evaluator
from ..normalize import normalize_whitespace
from ..result import RenderResult
from ..types import Message, MessageRole

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a block is constructed with invalid configuration."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


@dataclass(frozen=True)
class Renderable(ABC):
    """Abstract base class for prompt blocks.

    A block is an immutable unit of template text with a configured role.
    Rendering evaluates the template against a RenderContext and never
    mutates the block or the context. Evaluator errors are reported as a
    failed RenderResult; missing variables, empty history and disabled
    toggles simply produce empty output.

    Attributes:
        name: Display name of the block.
        role: Role every produced message is tagged with.
        template: Template source evaluated on render.
        is_delete_unnecessary_characters: Normalize whitespace of the output.

    Example:
        class ShoutBlock(Renderable):
            block_type = "shout"

            def _render_contents(self, context, evaluator):
                return [self._evaluate(context, evaluator).upper()]
    """
    name: str
    role: MessageRole
    template: str
    is_delete_unnecessary_characters: bool = False

    block_type: ClassVar[str] = ""
    # Variables the block supplies itself rather than reading from the context
    provided_variables: ClassVar[frozenset[str]] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.role, MessageRole):
            raise ConfigurationError(
                f"Block '{self.name}' has invalid role: {self.role!r}", field="role"
            )
        if not isinstance(self.template, str):
            raise ConfigurationError(
                f"Block '{self.name}' template must be a string", field="template"
            )

    @abstractmethod
    def _render_contents(self, context: RenderContext, evaluator: Evaluator) -> list[str]:
        """Produce the block's content strings in output order.

        Args:
            context: The RenderContext for the current render.
            evaluator: The Evaluator to run templates with.

        Returns:
            One string per message the block contributes.

        Raises:
            EvaluationError: If a template cannot be evaluated.
        """
        ...

    def _evaluate(
        self,
        context: RenderContext,
        evaluator: Evaluator,
        extra: Optional[Mapping[str, Any]] = None,
    ) -> str:
        text = evaluator.evaluate(self.template, context, extra)
        if self.is_delete_unnecessary_characters:
            text = normalize_whitespace(text)
        return text

    def _collect(self, context: RenderContext, evaluator: Optional[Evaluator]) -> list[str]:
        contents = self._render_contents(context, evaluator or default_evaluator())
        return [content for content in contents if content]

    def render_messages(
        self,
        context: RenderContext,
        evaluator: Optional[Evaluator] = None,
    ) -> RenderResult[list[Message]]:
        """Render the block into role-tagged messages.

        Args:
            context: The RenderContext to evaluate against.
            evaluator: Optional Evaluator; the shared default is used if omitted.

        Returns:
            A RenderResult holding the messages, each tagged with ``role``.
        """
        try:
            contents = self._collect(context, evaluator)
        except EvaluationError as e:
            logger.warning(f"Failed to render block '{self.name}': {e}")
            return RenderResult.fail(f"Failed to render block '{self.name}': {e}")
        return RenderResult.ok([Message(role=self.role, content=content) for content in contents])

    def render_prompt(
        self,
        context: RenderContext,
        evaluator: Optional[Evaluator] = None,
    ) -> RenderResult[str]:
        """Render the block into one string without role tags.

        Message boundaries, if any, are joined with a single newline.
        """
        try:
            contents = self._collect(context, evaluator)
        except EvaluationError as e:
            logger.warning(f"Failed to render block '{self.name}': {e}")
            return RenderResult.fail(f"Failed to render block '{self.name}': {e}")
        return RenderResult.ok("\n".join(contents))

    def get_variables(self, evaluator: Optional[Evaluator] = None) -> list[str]:
        """List the context variables the template reads, sorted by name.

        Raises:
            EvaluationError: If the template is malformed.
        """
        names = (evaluator or default_evaluator()).referenced_variables(self.template)
        return sorted(names - self.provided_variables)

    def to_dict(self) -> dict[str, Any]:
        """Convert the block to a dictionary for serialization."""
        return {
            "type": self.block_type,
            "name": self.name,
            "role": self.role.value,
            "template": self.template,
            "isDeleteUnnecessaryCharacters": self.is_delete_unnecessary_characters,
        }
