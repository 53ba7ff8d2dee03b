"""
promptblocks - composable LLM prompt blocks.

Blocks hold template text that is evaluated against a RenderContext and
returned either as role-tagged messages or as one flattened prompt string.
"""

from .blocks import (
    ConfigurationError,
    HistoryBlock,
    HistoryRole,
    PlainBlock,
    Renderable,
    ToggleBlock,
    ToggleType,
    block_from_dict,
    blocks_from_json,
)
from .config import ConfigError, RenderConfig, build_context, load_config
from .constants import APP_VERSION as __version__
from .context import HistoryEntry, RenderContext, Tokenizer, ToggleState, fixed_clock, system_clock
from .evaluator import EvaluationError, Evaluator, default_evaluator
from .normalize import normalize_whitespace
from .result import RenderFailure, RenderResult
from .tokenizer import HeuristicTokenizer, TiktokenTokenizer
from .types import BlockId, Message, MessageRole

__all__ = [
    "__version__",
    "BlockId",
    "ConfigError",
    "ConfigurationError",
    "EvaluationError",
    "Evaluator",
    "HeuristicTokenizer",
    "HistoryBlock",
    "HistoryEntry",
    "HistoryRole",
    "Message",
    "MessageRole",
    "PlainBlock",
    "RenderConfig",
    "RenderContext",
    "RenderFailure",
    "RenderResult",
    "Renderable",
    "TiktokenTokenizer",
    "ToggleBlock",
    "ToggleState",
    "ToggleType",
    "Tokenizer",
    "block_from_dict",
    "blocks_from_json",
    "build_context",
    "default_evaluator",
    "fixed_clock",
    "load_config",
    "normalize_whitespace",
    "system_clock",
]
