"""
Daily matchup scheduling within one division.

Sorts the active pool with a phase-dependent comparator, then pairs it
greedily, scanning forward for the candidate with the smallest phase
distance. The greedy pass is repeated with different tie-break orders and the
attempt with the most pairs is kept. Competitors left over are retried under
progressively relaxed constraint stages.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from src.league.models import Competitor
from src.torikumi.constraints import (
    DEFAULT_STAGES,
    FacedMap,
    PairConstraints,
    STRICT,
    is_valid_pair,
    mark_faced,
)
from src.torikumi.tiebreak import HashTieBreak, RandomTieBreak

logger = logging.getLogger(__name__)

EARLY = "early"
MID = "mid"
LATE = "late"


@dataclass
class SchedulerConfig:
    """Tuning for the daily scheduler."""
    early_phase_end: int = 5
    mid_phase_end: int = 9
    total_days: int = 15
    leader_cluster_min_pool: int = 8
    leader_cluster_size: int = 12
    leader_win_window: int = 1
    # (max pool size, attempts); pools above the last bound use fallback_attempts
    attempt_schedule: Sequence = ((60, 24), (140, 8))
    fallback_attempts: int = 4
    # A short-schedule competitor this deep into its bouts is scored as late phase
    climax_max_target_bouts: int = 7
    climax_bouts_done: int = 5
    survival_match_bonus: float = 40.0

    def attempts_for(self, pool_size: int) -> int:
        """Number of greedy attempts for a pool of the given size."""
        for bound, attempts in self.attempt_schedule:
            if pool_size <= bound:
                return attempts
        return self.fallback_attempts


@dataclass
class BoutPair:
    """A scheduled bout between two competitors."""
    east: Competitor
    west: Competitor
    stage: str = STRICT.name
    boundary_id: Optional[str] = None
    activation_reasons: List[str] = field(default_factory=list)

    @property
    def ids(self) -> tuple:
        return (self.east.id, self.west.id)

    @property
    def is_boundary(self) -> bool:
        return self.boundary_id is not None


@dataclass
class DailyMatchups:
    """Pairs and byes produced for one pool on one day."""
    pairs: List[BoutPair] = field(default_factory=list)
    bye_ids: List[str] = field(default_factory=list)


def resolve_phase(day: int, config: Optional[SchedulerConfig] = None) -> str:
    """
    Classify a tournament day as early, mid or late.

    Raises:
        ValueError: If the day is outside 1..total_days
    """
    config = config or SchedulerConfig()
    if day < 1 or day > config.total_days:
        raise ValueError(f"Day {day} outside 1..{config.total_days}")
    if day <= config.early_phase_end:
        return EARLY
    if day <= config.mid_phase_end:
        return MID
    return LATE


def phase_sort_key(competitor: Competitor, phase: str, tie_keys: Dict[str, float]) -> tuple:
    """Sort key for the phase comparator, ending in the id for a total order."""
    tie = tie_keys.get(competitor.id, 0.0)
    if phase == EARLY:
        return (competitor.rank_score, competitor.losses, tie, competitor.id)
    if phase == MID:
        return (-competitor.wins, competitor.rank_score, competitor.losses, tie, competitor.id)
    return (-competitor.wins, competitor.losses, competitor.rank_score, tie, competitor.id)


def is_lower_division_climax(competitor: Competitor, config: Optional[SchedulerConfig] = None) -> bool:
    config = config or SchedulerConfig()
    return (0 < competitor.target_bouts <= config.climax_max_target_bouts
            and competitor.bouts_done >= config.climax_bouts_done)


def is_survival_match_point(competitor: Competitor) -> bool:
    """Level record one bout short of a decided majority, e.g. 3-3 of 7 or 7-7 of 15."""
    if competitor.target_bouts <= 0:
        return False
    level = (competitor.target_bouts - 1) // 2
    return competitor.wins == level and competitor.total_losses == level


def pair_phase(phase: str, a: Competitor, b: Competitor, config: Optional[SchedulerConfig] = None) -> str:
    """Phase used to score one pair: the day's phase, or late if either side is at its climax."""
    if is_lower_division_climax(a, config) or is_lower_division_climax(b, config):
        return LATE
    return phase


def pair_distance(
    a: Competitor,
    b: Competitor,
    phase: str,
    rank_distance: Optional[float] = None
) -> float:
    """
    Phase-dependent distance between two competitors (lower is better).

    early: rank distance
    mid:   100 * |win diff| + rank distance
    late:  120 * |win diff| + 8 * |loss diff|

    Args:
        a: First competitor
        b: Second competitor
        phase: EARLY, MID or LATE
        rank_distance: Override for the rank distance (used across a division seam)
    """
    if rank_distance is None:
        rank_distance = abs(a.rank_score - b.rank_score)
    win_diff = abs(a.wins - b.wins)
    if phase == EARLY:
        return float(rank_distance)
    if phase == MID:
        return 100.0 * win_diff + rank_distance
    return 120.0 * win_diff + 8.0 * abs(a.losses - b.losses)


def pair_score(
    a: Competitor,
    b: Competitor,
    phase: str,
    config: Optional[SchedulerConfig] = None,
    rank_distance: Optional[float] = None,
    playoff_bonus: float = 0.0
) -> float:
    """
    Pair distance adjusted for late-tournament stakes.

    In the late phase a bout between two competitors on the same survival
    match point earns `survival_match_bonus`, and `playoff_bonus` is
    subtracted for a boundary playoff.
    """
    config = config or SchedulerConfig()
    phase = pair_phase(phase, a, b, config)
    score = pair_distance(a, b, phase, rank_distance)
    if phase != LATE:
        return score
    if (is_survival_match_point(a) and is_survival_match_point(b)
            and a.target_bouts == b.target_bouts
            and a.wins == b.wins and a.total_losses == b.total_losses):
        score -= config.survival_match_bonus
    return score - playoff_bonus


class DailyMatchupScheduler:
    """
    Produces same-division pairs for one day.

    Usage:
        scheduler = DailyMatchupScheduler()
        result = scheduler.schedule(roster, faced, day=3, rng=rng)
    """

    def __init__(self, config: Optional[SchedulerConfig] = None):
        self.config = config or SchedulerConfig()

    def schedule(
        self,
        competitors: List[Competitor],
        faced: FacedMap,
        day: int,
        rng: np.random.Generator,
        stages: Sequence[PairConstraints] = DEFAULT_STAGES
    ) -> DailyMatchups:
        """
        Pair the active competitors of one pool for a day.

        Every pair found is marked into `faced` before returning.

        Args:
            competitors: Pool to pair (inactive members are ignored)
            faced: Opponents met so far this tournament (mutated)
            day: Tournament day, 1-based
            rng: Random source for the primary attempt's tie-break
            stages: Constraint stages tried in order on the remaining byes

        Returns:
            DailyMatchups with the pairs and the ordered bye ids
        """
        phase = resolve_phase(day, self.config)
        active = [c for c in competitors if c.active]
        if len(active) <= 1:
            return DailyMatchups(pairs=[], bye_ids=[c.id for c in active])

        by_id = {c.id: c for c in active}
        pool = active
        pairs: List[BoutPair] = []
        bye_ids = [c.id for c in active]

        for stage in stages:
            if len(pool) < 2:
                break
            attempt = self._best_attempt(pool, faced, day, phase, stage, rng)
            pairs.extend(attempt.pairs)
            bye_ids = attempt.bye_ids
            pool = [by_id[i] for i in bye_ids]
            if attempt.pairs and stage is not STRICT:
                logger.debug("Day %d: %d pairs under %s stage, %d byes left",
                             day, len(attempt.pairs), stage.name, len(bye_ids))

        for pair in pairs:
            mark_faced(faced, pair.east, pair.west)

        return DailyMatchups(pairs=pairs, bye_ids=bye_ids)

    def _best_attempt(
        self,
        pool: List[Competitor],
        faced: FacedMap,
        day: int,
        phase: str,
        constraints: PairConstraints,
        rng: np.random.Generator
    ) -> DailyMatchups:
        """Run the greedy pass several times and keep the attempt with the most pairs."""
        attempts = self.config.attempts_for(len(pool))
        max_pairs = len(pool) // 2

        best = self._attempt(pool, faced, phase, constraints, RandomTieBreak(rng).keys(pool))
        for attempt in range(1, attempts):
            if len(best.pairs) >= max_pairs:
                break
            tie_keys = HashTieBreak(day, attempt).keys(pool)
            candidate = self._attempt(pool, faced, phase, constraints, tie_keys)
            if len(candidate.pairs) > len(best.pairs):
                best = candidate
        return best

    def _attempt(
        self,
        pool: List[Competitor],
        faced: FacedMap,
        phase: str,
        constraints: PairConstraints,
        tie_keys: Dict[str, float]
    ) -> DailyMatchups:
        """One greedy pairing pass over the sorted pool."""
        ordered = sorted(pool, key=lambda c: phase_sort_key(c, phase, tie_keys))
        used = set()
        pairs = []

        if phase == LATE and len(ordered) >= self.config.leader_cluster_min_pool:
            top_wins = ordered[0].wins
            contenders = [
                c for c in ordered
                if c.wins >= top_wins - self.config.leader_win_window
            ][:self.config.leader_cluster_size]
            for contender in contenders:
                if contender.id in used:
                    continue
                opponent = self._best_candidate(contenders, contender, 0, used, faced, phase, constraints)
                if opponent is not None:
                    used.add(contender.id)
                    used.add(opponent.id)
                    pairs.append(BoutPair(contender, opponent, stage=constraints.name))

        for index, current in enumerate(ordered):
            if current.id in used:
                continue
            opponent = self._best_candidate(ordered, current, index + 1, used, faced, phase, constraints)
            if opponent is None:
                continue
            used.add(current.id)
            used.add(opponent.id)
            pairs.append(BoutPair(current, opponent, stage=constraints.name))

        bye_ids = [c.id for c in ordered if c.id not in used]
        return DailyMatchups(pairs=pairs, bye_ids=bye_ids)

    def _best_candidate(
        self,
        ordered: List[Competitor],
        current: Competitor,
        start: int,
        used: set,
        faced: FacedMap,
        phase: str,
        constraints: PairConstraints
    ) -> Optional[Competitor]:
        """Closest valid unused opponent at or after `start`; ties go to the better rank."""
        best = None
        best_key = None
        for candidate in ordered[start:]:
            if candidate.id in used or candidate.id == current.id:
                continue
            if not is_valid_pair(faced, current, candidate, constraints):
                continue
            key = (pair_score(current, candidate, phase, self.config), candidate.rank_score, candidate.id)
            if best_key is None or key < best_key:
                best, best_key = candidate, key
        return best
