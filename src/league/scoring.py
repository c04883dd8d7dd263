"""
Small numeric helpers shared by the scheduler, exchange rules and reconciler.
"""

import math
from typing import Optional

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def clamp(value, low, high):
    return max(low, min(high, value))


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of a string. Content-derived, stable across runs."""
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return h


def hash_unit(text: str) -> float:
    """Map a string to a float in [0, 1)."""
    return fnv1a_32(text) / 2 ** 32


def rank_number(rank_score: int, max_number: Optional[int] = None) -> int:
    """
    Sub-rank number of a rank score: two ordinals (East, West) per number.

    Args:
        rank_score: Dense ordinal within the division
        max_number: Optional upper clamp for the number
    """
    number = max(1, math.ceil(rank_score / 2))
    if max_number is not None:
        number = clamp(number, 1, max(1, max_number))
    return number


def max_number_for(size: int) -> int:
    """Largest rank number in a division of `size` competitors."""
    return max(1, math.ceil(size / 2))
