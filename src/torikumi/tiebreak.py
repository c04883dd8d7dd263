"""
Tie-break strategies for scheduler sort order.

The primary attempt draws true random keys from the injected generator.
Later attempts use a content-derived hash of (id, day, attempt), so the same
day and attempt always yield the same order.
"""

from typing import Dict, Iterable

import numpy as np

from src.league.models import Competitor
from src.league.scoring import hash_unit


class RandomTieBreak:
    """Random keys drawn once per competitor from the injected generator."""

    name = "random"

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def keys(self, competitors: Iterable[Competitor]) -> Dict[str, float]:
        pool = list(competitors)
        draws = self.rng.random(len(pool))
        return {c.id: float(draw) for c, draw in zip(pool, draws)}


class HashTieBreak:
    """Deterministic keys from a hash of the competitor id, day and attempt."""

    name = "hash"

    def __init__(self, day: int, attempt: int):
        self.day = day
        self.attempt = attempt

    def key(self, competitor: Competitor) -> float:
        return hash_unit(f"{competitor.id}|{self.day}|{self.attempt}")

    def keys(self, competitors: Iterable[Competitor]) -> Dict[str, float]:
        return {c.id: self.key(c) for c in competitors}
