"""Text normalization shared by candidate scoring."""

from __future__ import annotations

import re

from labelid.models.candidate import SERIAL, ScanMode

_WHITESPACE = re.compile(r"\s+")

# Letters OCR commonly returns in place of digits
DIGIT_CONFUSIONS: dict[str, str] = {
    "O": "0",
    "o": "0",
    "I": "1",
    "i": "1",
    "l": "1",
    "Z": "2",
    "z": "2",
    "S": "5",
    "s": "5",
}

_DIGIT_TABLE = str.maketrans(DIGIT_CONFUSIONS)


def sanitize_text(text: str) -> str:
    """Trim, drop all whitespace, underscores to hyphens, lowercase."""
    return _WHITESPACE.sub("", text.strip()).replace("_", "-").lower()


def normalize_numeric_heavy(text: str) -> str:
    return text.translate(_DIGIT_TABLE)


def mode_aware_text(text: str, mode: ScanMode) -> str:
    """Sanitized text, with digit confusions corrected in serial mode only."""
    cleaned = sanitize_text(text)
    if cleaned and mode == SERIAL:
        return normalize_numeric_heavy(cleaned)
    return cleaned
