"""
Default intake collaborator: new recruits for the entry pool.
"""

import logging
from typing import List

import numpy as np

from src.league.constants import ENTRY_POOL
from src.league.models import Competitor
from src.league.registry import LeagueRegistry

logger = logging.getLogger(__name__)


def stable_id_for(index: int) -> str:
    return f"S{index:03d}"


class RecruitIntake:
    """
    Creates batches of new competitors destined for the entry pool.

    Ids are sequential (R00001, R00002, ...) and stables are assigned
    round-robin. Recruits are returned, not registered; the caller adds them.
    """

    def __init__(
        self,
        batch_size: int = 8,
        stable_count: int = 45,
        ability_mean: float = 46.0,
        ability_sigma: float = 5.0,
        entry_age: int = 16
    ):
        if batch_size < 1:
            raise ValueError("Intake batch size must be at least 1")
        if stable_count < 1:
            raise ValueError("Need at least one stable")
        self.batch_size = batch_size
        self.stable_count = stable_count
        self.ability_mean = ability_mean
        self.ability_sigma = ability_sigma
        self.entry_age = entry_age
        self.serial = 0

    def _next_id(self, registry: LeagueRegistry) -> str:
        while True:
            self.serial += 1
            competitor_id = f"R{self.serial:05d}"
            if competitor_id not in registry:
                return competitor_id

    def __call__(self, registry: LeagueRegistry, rng: np.random.Generator, count: int = 0) -> List[Competitor]:
        """
        Create a batch of recruits.

        Args:
            registry: Registry used to avoid id collisions
            rng: Random source
            count: Batch size override (0 uses the configured size)
        """
        recruits = []
        for _ in range(count or self.batch_size):
            competitor_id = self._next_id(registry)
            ability = float(rng.normal(self.ability_mean, self.ability_sigma))
            age = self.entry_age + int(rng.integers(0, 7))
            recruits.append(Competitor(
                id=competitor_id,
                shikona=f"Recruit {self.serial}",
                stable_id=stable_id_for((self.serial - 1) % self.stable_count),
                division=ENTRY_POOL,
                rank_score=0,
                power=ability,
                ability=ability,
                age=age,
                entry_age=age,
            ))
        logger.info("Recruited %d new competitors", len(recruits))
        return recruits
