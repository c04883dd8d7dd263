"""
Default retirement collaborator.

Retirement marks competitors inactive; it never removes them from the
registry.
"""

import logging
from typing import List

import numpy as np

from src.league.constants import JONIDAN, JONOKUCHI, ENTRY_POOL
from src.league.models import Competitor
from src.league.registry import LeagueRegistry

logger = logging.getLogger(__name__)

RECENT_RESULTS_KEPT = 6
CYCLES_PER_YEAR = 6
DEEP_DIVISIONS = (JONIDAN, JONOKUCHI, ENTRY_POOL)


def advance_careers(registry: LeagueRegistry):
    """Close the tournament for every active competitor: store the record, age by one cycle."""
    for competitor in registry.active():
        if competitor.target_bouts > 0:
            competitor.recent_results.append((competitor.wins, competitor.total_losses))
            del competitor.recent_results[:-RECENT_RESULTS_KEPT]
        competitor.career_basho += 1
        competitor.age = competitor.entry_age + competitor.career_basho // CYCLES_PER_YEAR


def losing_streak(competitor: Competitor) -> int:
    """Consecutive most-recent tournaments with more losses than wins."""
    streak = 0
    for wins, losses in reversed(competitor.recent_results):
        if wins >= losses:
            break
        streak += 1
    return streak


class RetirementModel:
    """
    Age, strength and form based retirement.

    Chance per cycle: certain at 50; otherwise grows with age past 41, with
    effective ability under 65, with three or more straight losing records,
    and for competitors deep in the bottom divisions. Scaled by `bias` and
    capped at `max_chance`.
    """

    def __init__(self, bias: float = 1.0, max_chance: float = 0.92, protect_player: bool = True):
        self.bias = bias
        self.max_chance = max_chance
        self.protect_player = protect_player

    def retirement_chance(self, competitor: Competitor, division_size: int) -> float:
        if competitor.age >= 50:
            return 1.0
        chance = 0.0
        if competitor.age >= 42:
            chance += (competitor.age - 41) * 0.015
        if competitor.ability < 65:
            chance += (65 - competitor.ability) * 0.004
        streak = losing_streak(competitor)
        if streak >= 3:
            chance += 0.08 + (streak - 3) * 0.03
        if competitor.division in DEEP_DIVISIONS and competitor.rank_score > division_size * 0.75:
            chance += 0.04
        return max(0.0, min(self.max_chance, chance * self.bias))

    def __call__(self, registry: LeagueRegistry, rng: np.random.Generator) -> List[str]:
        """
        Retire competitors in place.

        Returns:
            Ids retired this cycle, in registry order
        """
        sizes = registry.active_counts()
        retired = []
        for competitor in registry.active():
            if competitor.is_player and self.protect_player:
                continue
            chance = self.retirement_chance(competitor, sizes.get(competitor.division, 0))
            if chance >= 1.0 or rng.random() < chance:
                competitor.active = False
                retired.append(competitor.id)
        if retired:
            logger.info("Retired %d competitors", len(retired))
        return retired
