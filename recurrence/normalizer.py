"""
normalizer.py
--------------
Text/key normalization for grouping labels.

Turns a free-text transaction label ("Payment to NETFLIX.COM  #123") into a
canonical token ("netflix com 123") so that the same counterparty groups
together regardless of case, punctuation or a leading filler word.
Caller-supplied grouping substrings force known aliases into one label.
"""

import re
from typing import Iterable

from recurrence.models import Transaction


_LEADING_FILLER = re.compile(r"^\s*(?:to|from|transfer|payment)\b", re.IGNORECASE)
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _collapse(value: str) -> str:
    value = _NON_ALNUM.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", value.strip())


def normalize_label(label: str, grouping_substrings: Iterable[str] = ()) -> str:
    """
    Canonical grouping token for a label.

    Steps: lower-case, strip one leading filler word (to/from/transfer/payment),
    turn punctuation runs into single spaces, trim and collapse whitespace.
    If a grouping substring (normalized the same way) occurs in the result,
    the first such substring becomes the label.

    Examples:
        normalize_label("Payment NETFLIX.COM")          -> "netflix com"
        normalize_label("AMZN*MKTP US", ["amzn*mktp"])  -> "amzn mktp"
        normalize_label("Transfer")                     -> "transfer"
    """
    lowered = label.lower()
    normalized = _collapse(_LEADING_FILLER.sub("", lowered, count=1))
    if not normalized:
        # Label was only a filler word; keep it rather than returning "".
        normalized = _collapse(lowered)

    for substring in grouping_substrings:
        alias = _collapse(substring)
        if alias and alias in normalized:
            return alias

    return normalized


def resolve_label(transaction: Transaction) -> str:
    """Structured source name when present, otherwise the description."""
    if transaction.source is not None and transaction.source.name:
        return transaction.source.name
    return transaction.description


def hash_string(value: str) -> str:
    """
    32-bit FNV-1a hash of a string, rendered in base 36.

    Hashes UTF-16 code units so ids match the browser client's hashString,
    which keeps calendar UIDs stable across implementations.
    """
    h = _FNV_OFFSET_BASIS
    encoded = value.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        h ^= encoded[i] | (encoded[i + 1] << 8)
        h = (h * _FNV_PRIME) & 0xFFFFFFFF

    if h == 0:
        return "0"
    digits = []
    while h:
        h, rem = divmod(h, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))
