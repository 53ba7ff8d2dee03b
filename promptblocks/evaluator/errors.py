"""
Errors raised while evaluating templates.
"""
from typing import Optional


class EvaluationError(Exception):
    """Raised when a template cannot be evaluated.

    Covers malformed template syntax, unknown filters, wrong filter arity or
    argument types, and filters whose required capability is missing from
    the render context.
    """

    def __init__(self, message: str, filter_name: Optional[str] = None):
        self.filter_name = filter_name
        super().__init__(message)
