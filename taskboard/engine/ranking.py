"""Lexicographic ranking keys for ordering tasks inside a column.

A key is read as the base-62 fraction ``0.<digits>``. Digits are ordered the
same way as their ASCII codes, so comparing two keys as plain strings gives
the same answer as comparing the fractions, as long as no key ends with the
zero digit. Every key produced here respects that, which means a new key can
always be found between any two distinct keys without touching either of
them.
"""
from typing import List, Optional

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
BASE = len(DIGITS)
_INDEX = {digit: i for i, digit in enumerate(DIGITS)}


def is_valid_key(key: str) -> bool:
    return bool(key) and not key.endswith(DIGITS[0]) and all(c in _INDEX for c in key)


def _midpoint(low: str, high: Optional[str]) -> str:
    """Key strictly between ``low`` ("" is zero) and ``high`` (None is one)"""
    if high is not None:
        # Skip the common prefix, treating missing low digits as zeros
        n = 0
        while n < len(high) and (low[n] if n < len(low) else DIGITS[0]) == high[n]:
            n += 1
        if n > 0:
            return high[:n] + _midpoint(low[n:], high[n:])

    digit_low = _INDEX[low[0]] if low else 0
    digit_high = _INDEX[high[0]] if high is not None else BASE

    if digit_high - digit_low > 1:
        return DIGITS[(digit_low + digit_high) // 2]

    # Adjacent first digits
    if high is not None and len(high) > 1:
        return high[0]
    return DIGITS[digit_low] + _midpoint(low[1:], None)


def key_between(before: Optional[str], after: Optional[str]) -> str:
    """Return a key sorting after ``before`` and before ``after``.

    Either side may be None (open end). Raises ValueError when the bounds are
    malformed or not strictly ordered.
    """
    low = before or ""
    if low and not is_valid_key(low):
        raise ValueError(f"Invalid ranking key: {before!r}")
    if after is not None and not is_valid_key(after):
        raise ValueError(f"Invalid ranking key: {after!r}")
    if after is not None and low >= after:
        raise ValueError(f"Ranking keys out of order: {before!r} >= {after!r}")
    return _midpoint(low, after)


def spread_keys(count: int) -> List[str]:
    """``count`` evenly spaced, strictly increasing keys of minimal width"""
    if count <= 0:
        return []
    width = 1
    while BASE ** width <= count:
        width += 1
    span = BASE ** width

    keys = []
    for i in range(1, count + 1):
        value = i * span // (count + 1)
        digits = []
        for _ in range(width):
            value, remainder = divmod(value, BASE)
            digits.append(DIGITS[remainder])
        keys.append("".join(reversed(digits)).rstrip(DIGITS[0]))
    return keys
