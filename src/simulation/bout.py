"""
Bout outcome model.

Win probability is a logistic curve on the ability gap, clamped away from
certainty:
- P(a beats b) = 1 / (1 + exp(-scale * (ability_a - ability_b)))
- clamped to [min_probability, max_probability]
"""

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from src.league.models import Competitor
from src.league.scoring import clamp
from src.torikumi.scheduler import BoutPair


@dataclass
class BoutResult:
    """Result of a single bout."""
    winner_id: str
    loser_id: str
    win_probability: float
    fusen: bool = False


class BoutModel:
    """
    Logistic bout model.

    Updates wins and losses on the competitors it resolves.
    """

    def __init__(
        self,
        logistic_scale: float = 0.065,
        min_probability: float = 0.03,
        max_probability: float = 0.97,
        momentum_weight: float = 0.0
    ):
        """
        Initialize the bout model.

        Args:
            logistic_scale: Steepness of the logistic on the ability gap
            min_probability: Lower clamp on any win probability
            max_probability: Upper clamp on any win probability
            momentum_weight: Ability bonus per net win in the current tournament
        """
        if not 0.0 <= min_probability <= max_probability <= 1.0:
            raise ValueError("Probability clamps must satisfy 0 <= min <= max <= 1")
        self.logistic_scale = logistic_scale
        self.min_probability = min_probability
        self.max_probability = max_probability
        self.momentum_weight = momentum_weight

    def effective_ability(self, competitor: Competitor) -> float:
        return competitor.ability + self.momentum_weight * competitor.record_diff

    def win_probability(self, a: Competitor, b: Competitor) -> float:
        """
        Probability that `a` beats `b`.

        Returns:
            Probability in [min_probability, max_probability]
        """
        diff = self.effective_ability(a) - self.effective_ability(b)
        raw = 1.0 / (1.0 + math.exp(-self.logistic_scale * diff))
        return clamp(raw, self.min_probability, self.max_probability)

    def simulate_bout(self, a: Competitor, b: Competitor, rng: np.random.Generator) -> Optional[BoutResult]:
        """
        Decide one bout and record it on both competitors.

        An inactive side forfeits (fusen) and is charged an absence. If both
        sides are inactive nothing is recorded.

        Returns:
            BoutResult, or None if neither side could fight
        """
        if not a.active and not b.active:
            return None
        if not a.active or not b.active:
            winner, loser = (a, b) if a.active else (b, a)
            winner.wins += 1
            loser.absences += 1
            return BoutResult(winner.id, loser.id, 1.0, fusen=True)

        p_a = self.win_probability(a, b)
        if rng.random() < p_a:
            winner, loser, p = a, b, p_a
        else:
            winner, loser, p = b, a, 1.0 - p_a
        winner.wins += 1
        loser.losses += 1
        return BoutResult(winner.id, loser.id, p)

    def resolve_pair(self, pair: BoutPair, rng: np.random.Generator) -> Optional[BoutResult]:
        """Callback form for the basho scheduler."""
        return self.simulate_bout(pair.east, pair.west, rng)
