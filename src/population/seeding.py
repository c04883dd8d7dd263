"""
Build a fully populated league for a new simulation.
"""

from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from src.league.constants import (
    MAKUUCHI,
    JURYO,
    MAKUSHITA,
    SANDANME,
    JONIDAN,
    JONOKUCHI,
    MAEZUMO,
    DIVISION_ORDER,
    ENTRY_POOL,
    PLAYER_ID,
)
from src.league.models import Competitor
from src.league.registry import LeagueRegistry
from src.population.intake import stable_id_for
from src.population.policy import DivisionPolicy, initial_headcount, resolve_policy_map

# (mean, sigma) of ability per division
ABILITY_DISTRIBUTION: Dict[str, Tuple[float, float]] = {
    MAKUUCHI: (122.0, 10.0),
    JURYO: (106.0, 8.0),
    MAKUSHITA: (90.0, 7.0),
    SANDANME: (76.0, 7.0),
    JONIDAN: (64.0, 7.0),
    JONOKUCHI: (54.0, 6.0),
    MAEZUMO: (46.0, 5.0),
}

DEFAULT_STABLE_COUNT = 45
DEFAULT_ENTRY_POOL_SIZE = 12


def build_initial_league(
    rng: np.random.Generator,
    policies: Optional[Iterable[DivisionPolicy]] = None,
    stable_count: int = DEFAULT_STABLE_COUNT,
    entry_pool_size: int = DEFAULT_ENTRY_POOL_SIZE,
    player_division: Optional[str] = None,
    player_id: str = PLAYER_ID
) -> LeagueRegistry:
    """
    Create a league with every division at its seeding headcount.

    Within each division, stronger competitors get better rank scores.
    Stables are assigned round-robin across the whole league.

    Args:
        rng: Random source
        policies: Division policies (defaults apply where omitted)
        stable_count: Number of stables
        entry_pool_size: Competitors placed in the entry pool
        player_division: If set, the worst-ranked member of this division becomes the player
        player_id: Id given to the player

    Returns:
        Populated LeagueRegistry
    """
    if stable_count < 1:
        raise ValueError("Need at least one stable")
    if player_division is not None and player_division not in DIVISION_ORDER:
        raise ValueError(f"Unknown division: {player_division}")

    policy_map = resolve_policy_map(policies)
    registry = LeagueRegistry()
    serial = 0

    for division in DIVISION_ORDER:
        size = entry_pool_size if division == ENTRY_POOL else initial_headcount(policy_map[division])
        mean, sigma = ABILITY_DISTRIBUTION[division]
        abilities = np.sort(rng.normal(mean, sigma, size))[::-1]
        ages = rng.integers(18, 34, size)
        for position in range(size):
            serial += 1
            ability = float(abilities[position])
            age = int(ages[position])
            is_player = division == player_division and position == size - 1
            registry.add(Competitor(
                id=player_id if is_player else f"N{serial:05d}",
                shikona="Player" if is_player else f"Rikishi {serial}",
                stable_id=stable_id_for((serial - 1) % stable_count),
                division=division,
                rank_score=position + 1,
                power=ability,
                ability=ability,
                is_player=is_player,
                age=age,
                entry_age=age,
            ))

    return registry
