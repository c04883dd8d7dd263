"""
Division classification helpers.
"""

from src.league.constants import (
    ELITE_DIVISIONS,
    ENTRY_POOL,
    SEKITORI_BOUTS,
    LOWER_BOUTS,
)


def is_elite(division: str) -> bool:
    return division in ELITE_DIVISIONS


def is_entry_pool(division: str) -> bool:
    return division == ENTRY_POOL


def bouts_for_division(division: str) -> int:
    """Number of bouts a competitor of this division fights per tournament."""
    if is_entry_pool(division):
        return 0
    return SEKITORI_BOUTS if is_elite(division) else LOWER_BOUTS
