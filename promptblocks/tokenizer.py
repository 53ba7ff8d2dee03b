"""
Tokenizer implementations for the ``token_size`` filter.

Provides a character-ratio estimator that needs no external data and a
wrapper around ``tiktoken`` encodings for exact counts.
"""

import logging

from .constants import CHARS_PER_TOKEN, DEFAULT_ENCODING

logger = logging.getLogger(__name__)


class HeuristicTokenizer:
    """Estimates token counts from character length.

    Uses a consistent character-to-token ratio, which is a reasonable
    approximation for English text without requiring a vocabulary.
    """

    def __init__(self, chars_per_token: int = CHARS_PER_TOKEN) -> None:
        if chars_per_token < 1:
            raise ValueError("chars_per_token must be at least 1")
        self.chars_per_token = chars_per_token

    def count_tokens(self, text: str) -> int:
        """Estimate token count from content string.

        Args:
            text: The text content to estimate tokens for.

        Returns:
            Estimated token count (always >= 0).
        """
        if not text:
            return 0
        return len(text) // self.chars_per_token


class TiktokenTokenizer:
    """Counts tokens with a ``tiktoken`` encoding.

    Requires the ``tiktoken`` extra. The encoding is resolved once on
    construction.
    """

    def __init__(self, encoding_name: str = DEFAULT_ENCODING) -> None:
        import tiktoken

        self.encoding_name = encoding_name
        self._encoding = tiktoken.get_encoding(encoding_name)
        logger.debug(f"Using tiktoken encoding {encoding_name}")

    def encode(self, text: str) -> list[int]:
        return self._encoding.encode(text)

    def count_tokens(self, text: str) -> int:
        return len(self._encoding.encode(text))
