"""
Template evaluation for prompt blocks.

Provides the Evaluator together with the built-in macros (``now``) and
filters (relative dates, ``random``, ``roll``, ``token_size``).
"""

from .engine import Evaluator, default_evaluator
from .errors import EvaluationError
from .filters import FILTERS
from .macros import MACROS, format_iso
from .relative_time import humanize_duration, parse_instant, relative_time

__all__ = [
    "Evaluator",
    "default_evaluator",
    "EvaluationError",
    "FILTERS",
    "MACROS",
    "format_iso",
    "humanize_duration",
    "parse_instant",
    "relative_time",
]
