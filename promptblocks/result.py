"""
RenderResult - success/failure wrapper returned by render operations.
"""
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class RenderFailure(Exception):
    """Raised when reading the value of a failed RenderResult."""

    def __init__(self, error: str):
        self.error = error
        super().__init__(f"Render failed: {error}")


@dataclass(frozen=True)
class RenderResult(Generic[T]):
    """Outcome of a render call.

    Render operations report evaluator errors as a failed result instead of
    raising, so one malformed block can be surfaced to the user without
    unwinding the caller's prompt assembly.

    Example:
        result = block.render_prompt(context)
        if result.is_failure:
            print(result.error)
        else:
            print(result.value)
    """
    _value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "RenderResult[T]":
        return cls(_value=value)

    @classmethod
    def fail(cls, error: str) -> "RenderResult[T]":
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @property
    def value(self) -> T:
        """The rendered value.

        Raises:
            RenderFailure: If the render failed.
        """
        if self.error is not None:
            raise RenderFailure(self.error)
        return self._value  # type: ignore[return-value]
