"""
Prompt block variants.

Blocks are immutable units of template text. Each exposes
``render_messages`` and ``render_prompt`` with identical semantics apart
from the output shape.
"""

from .base import ConfigurationError, Renderable
from .history import HistoryBlock, HistoryRole
from .parser import BLOCK_TYPES, block_from_dict, blocks_from_json
from .plain import PlainBlock
from .toggle import ToggleBlock, ToggleType

__all__ = [
    "ConfigurationError",
    "Renderable",
    "PlainBlock",
    "HistoryBlock",
    "HistoryRole",
    "ToggleBlock",
    "ToggleType",
    "BLOCK_TYPES",
    "block_from_dict",
    "blocks_from_json",
]
