"""
Constants and defaults for promptblocks.
"""
from typing import Final

APP_NAME: Final[str] = "promptblocks"
APP_VERSION: Final[str] = "1.0.0"
APP_DESCRIPTION: Final[str] = "Render composable LLM prompt blocks from templates"

# Environment variables that override configuration file values
ENV_SEED: Final[str] = "PROMPTBLOCKS_SEED"
ENV_NOW: Final[str] = "PROMPTBLOCKS_NOW"
ENV_TOKENIZER: Final[str] = "PROMPTBLOCKS_TOKENIZER"

DEFAULT_TOKENIZER: Final[str] = "heuristic"
DEFAULT_ENCODING: Final[str] = "cl100k_base"
DEFAULT_LOG_LEVEL: Final[str] = "WARNING"

# Approximately 4 characters per token for English text
CHARS_PER_TOKEN: Final[int] = 4

# Upper bounds for the roll filter
MAX_DICE_COUNT: Final[int] = 1000
MAX_DICE_SIDES: Final[int] = 100000

# Compiled templates kept per evaluator
TEMPLATE_CACHE_SIZE: Final[int] = 256
