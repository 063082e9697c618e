"""
Text Normalizer
===============

Canonicalizes extracted text so prompts built from it are stable:

- CRLF and lone CR become LF
- two or more consecutive blank lines (empty or whitespace-only) become one
- runs of horizontal whitespace become a single space
- leading/trailing whitespace of the whole text is trimmed

The function is pure and idempotent.
"""

import re

_LINE_ENDINGS = re.compile(r"\r\n?")
_EXCESS_BLANK_LINES = re.compile(r"\n(?:[ \t\f\v]*\n){2,}")
_HORIZONTAL_WHITESPACE = re.compile(r"[ \t\f\v]+")


def normalize_text(text: str | None) -> str:
    """
    Normalize extracted text.

    Args:
        text: Raw text from an extraction strategy (None is treated as empty)

    Returns:
        Normalized text

    Raises:
        TypeError: If ``text`` is not a string

    Example:
        >>> normalize_text("Line 1\\r\\n\\r\\n\\r\\nLine 2\\t\\tdue   Friday ")
        'Line 1\\n\\nLine 2 due Friday'
    """
    if text is None:
        return ""
    if not isinstance(text, str):
        raise TypeError(f"Expected str, got {type(text).__name__}")

    text = _LINE_ENDINGS.sub("\n", text)
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    return text.strip()
