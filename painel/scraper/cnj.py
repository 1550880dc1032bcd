"""Helpers for pulling CNJ case numbers out of free text."""
from __future__ import annotations

import re

# A run of at least 15 digits/dots/dashes not glued to another digit.
CNJ_EXTRACTION_PATTERN = re.compile(r"(?:^|\D)([\d.-]{15,})(?:\D|$)")
CNJ_FORMAT_PATTERN = re.compile(r"^(\d{7})(\d{2})(\d{4})(\d{1})(\d{2})(\d{4})$")
CNJ_LENGTH = 20

_NON_DIGITS = re.compile(r"\D")


def only_digits(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


def extract_and_clean_cnj(text: str | None) -> str | None:
    """Return the 20-digit CNJ found in ``text`` or ``None``.

    Only the first candidate run is considered; it is rejected when its digit
    count is not exactly 20.
    """

    match = CNJ_EXTRACTION_PATTERN.search(text or "")
    if not match:
        return None

    clean = only_digits(match.group(1))
    if len(clean) != CNJ_LENGTH:
        return None
    return clean


def format_cnj(clean_cnj: str) -> str:
    """Render a 20-digit CNJ as ``NNNNNNN-NN.NNNN.N.NN.NNNN``.

    Inputs that do not match the digit grouping are returned unchanged.
    """

    return CNJ_FORMAT_PATTERN.sub(r"\1-\2.\3.\4.\5.\6", clean_cnj)


__all__ = [
    "CNJ_EXTRACTION_PATTERN",
    "CNJ_FORMAT_PATTERN",
    "CNJ_LENGTH",
    "only_digits",
    "extract_and_clean_cnj",
    "format_cnj",
]
