"""Cleanup of raw provider text and of extracted text fields."""

import re

FENCE = "```"
# Opening fence with an optional language tag, e.g. ```json
_OPENING_FENCE = re.compile(r"^```[A-Za-z0-9_+\-]*")
_NEWLINES = re.compile(r"[\r\n]")
_SPACE_LIKE = re.compile(r"[\u00a0\u200b-\u200f\u2028\u2029\ufeff]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def clean(raw_text: str) -> str:
    """
    Trim a completion and strip one surrounding code fence per side.

    Args:
        raw_text: Raw provider output

    Returns:
        Text ready for JSON parsing
    """
    text = (raw_text or "").strip()
    if text.startswith(FENCE):
        text = _OPENING_FENCE.sub("", text, count=1).strip()
    if text.endswith(FENCE):
        text = text[: -len(FENCE)].strip()
    return text


def clean_field_text(value):
    """
    Normalize one natural-language field of a generated question.

    Newlines and unicode space-like or zero-width characters become spaces,
    whitespace runs collapse to one space, and ASCII control characters are
    removed. Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    cleaned = _NEWLINES.sub(" ", value)
    cleaned = _SPACE_LIKE.sub(" ", cleaned)
    cleaned = " ".join(cleaned.split())
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    # removing a control character can leave two spaces side by side
    return " ".join(cleaned.split())
