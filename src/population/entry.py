"""
Entry-pool promotion into the lowest ranked division.

Every tournament the whole entry pool fights a short three-bout qualifier.
Each newcomer's qualifier record puts it in a rise band (3 wins: band 1,
2 wins: band 2, otherwise band 3), and each band maps to a slot range in
Jonokuchi. Newcomers are merged with the sitting roster by slot; anyone
beyond the division's soft maximum goes back to the entry pool.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import numpy as np

from src.league.constants import DIVISION_SLOTS, ENTRY_POOL, JONOKUCHI
from src.league.registry import LeagueRegistry
from src.league.scoring import clamp
from src.population.policy import DivisionPolicy, resolve_policy_map, resolve_target_headcount

logger = logging.getLogger(__name__)

QUALIFIER_BOUTS = 3

# Fractions of the division's size bounding each rise band's slots
RISE_BAND_SLOT_FRACTIONS = {
    1: (0.13, 0.20),
    2: (0.30, 0.37),
    3: (0.47, 0.50),
}


@dataclass
class EntryPromotion:
    """One newcomer's qualifier outcome."""
    competitor_id: str
    rise_band: int
    qualifier_wins: int
    target_slot: int
    returned_to_pool: bool = False


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def rise_band_for(wins: int) -> int:
    if wins >= QUALIFIER_BOUTS:
        return 1
    if wins == QUALIFIER_BOUTS - 1:
        return 2
    return 3


def rise_band_slot_range(rise_band: int, division_slots: int) -> Tuple[int, int]:
    """Inclusive slot range (1-based) for a rise band in a division of the given size."""
    slots = max(1, division_slots)
    low, high = RISE_BAND_SLOT_FRACTIONS[rise_band]
    return (
        int(clamp(_round_half_up(slots * low), 1, slots)),
        int(clamp(_round_half_up(slots * high), 1, slots)),
    )


def qualifier_win_probability(
    ability: float,
    pivot: float = 40.0,
    scale: float = 42.0,
    low: float = 0.12,
    high: float = 0.88
) -> float:
    """Per-bout qualifier win chance: 0.25 at the pivot ability, rising by 1/scale per point."""
    return clamp(0.25 + (ability - pivot) / scale, low, high)


def promote_entry_pool(
    registry: LeagueRegistry,
    rng: np.random.Generator,
    policies: Optional[Iterable[DivisionPolicy]] = None,
    noise: float = 2.5
) -> List[EntryPromotion]:
    """
    Move the active entry pool into Jonokuchi.

    Sitting Jonokuchi members keep their relative order and win slot ties
    against newcomers. After the merge the division is densified; members
    beyond its soft maximum return to the tail of the entry pool.

    Args:
        registry: League registry (mutated)
        rng: Random source for the qualifier
        policies: Division policies; supplies Jonokuchi's soft maximum
        noise: Amplitude of the uniform ability noise on qualifier day

    Returns:
        One EntryPromotion per newcomer, in pool order
    """
    pool = registry.roster(ENTRY_POOL)
    if not pool:
        return []

    sitting = registry.roster(JONOKUCHI)
    division_slots = len(sitting) or DIVISION_SLOTS[JONOKUCHI]

    promotions = []
    newcomers = []
    for competitor in pool:
        seasonal = competitor.ability + float(rng.uniform(-noise, noise))
        p_win = qualifier_win_probability(seasonal)
        wins = int(np.sum(rng.random(QUALIFIER_BOUTS) < p_win))
        band = rise_band_for(wins)
        low, high = rise_band_slot_range(band, division_slots)
        slot = int(rng.integers(low, high + 1))
        promotions.append(EntryPromotion(competitor.id, band, wins, slot))
        newcomers.append((competitor, slot))

    # (slot, sitting before newcomers, original order)
    merged = [(c.rank_score, 0, index, c) for index, c in enumerate(sitting)]
    merged += [(slot, 1, index, c) for index, (c, slot) in enumerate(newcomers)]
    merged.sort(key=lambda row: row[:3])
    ordered = [row[3] for row in merged]

    policy = resolve_policy_map(policies)[JONOKUCHI]
    maximum = resolve_target_headcount(policy, len(ordered)).max
    kept = ordered if len(ordered) <= maximum else ordered[:int(maximum)]
    overflow = ordered[len(kept):]

    for position, competitor in enumerate(kept, 1):
        competitor.division = JONOKUCHI
        competitor.rank_score = position

    # The whole active pool entered the merge, so the overflow is the new pool
    by_id = {p.competitor_id: p for p in promotions}
    for position, competitor in enumerate(overflow, 1):
        competitor.division = ENTRY_POOL
        competitor.rank_score = position
        if competitor.id in by_id:
            by_id[competitor.id].returned_to_pool = True

    logger.info("Entry pool: %d newcomers to %s, %d returned", len(promotions),
                JONOKUCHI, len(overflow))
    return promotions
