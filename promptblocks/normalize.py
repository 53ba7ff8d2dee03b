"""
Whitespace normalization for rendered block text.
"""
import re

_NEWLINE_RUN = re.compile(r"\n{2,}")


def normalize_whitespace(text: str) -> str:
    """Canonicalize evaluator output.

    Strips leading and trailing whitespace, then collapses every run of two
    or more newlines into a single newline. Whitespace inside a line is left
    untouched. Applying it twice gives the same result as applying it once.

    Args:
        text: The fully evaluated template output.

    Returns:
        The normalized text.

    Example:
        >>> normalize_whitespace("   John\\n is \\n\\n\\ncool guy.   ")
        'John\\n is \\ncool guy.'
    """
    return _NEWLINE_RUN.sub("\n", text.strip())
