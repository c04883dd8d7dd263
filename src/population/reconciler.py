"""
League Population Reconciler.

Walks the divisions top to bottom after exchanges, retirements and intake,
demoting the worst members of over-full divisions and promoting the best of
the division below into under-full ones. A promotion that finds the
division below empty first pulls one up from further down, and ultimately
recruits into the entry pool, so promotions always cascade one division at
a time.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from src.league.constants import DIVISION_ORDER, ENTRY_POOL
from src.league.models import Competitor
from src.league.registry import LeagueRegistry, PopulationSnapshot, rank_order_key
from src.population.policy import DivisionPolicy, resolve_policy_map, resolve_target_headcount

logger = logging.getLogger(__name__)

PROMOTE = "PROMOTE"
DEMOTE = "DEMOTE"
INTAKE = "INTAKE"

IntakeFn = Callable[[LeagueRegistry, np.random.Generator], List[Competitor]]


@dataclass
class ReconcileMove:
    """One headcount move made by the reconciler."""
    competitor_id: str
    from_division: Optional[str]
    to_division: str
    move_type: str


@dataclass
class ReconcileReport:
    """Counts before and after a pass, plus every move made."""
    before: PopulationSnapshot
    after: PopulationSnapshot
    recruited: int = 0
    moves: List[ReconcileMove] = field(default_factory=list)
    unfilled: Dict[str, int] = field(default_factory=dict)

    def moves_of(self, move_type: str) -> List[ReconcileMove]:
        return [m for m in self.moves if m.move_type == move_type]


class LeaguePopulationReconciler:
    """
    Restores every division to its headcount policy.

    Usage:
        reconciler = LeaguePopulationReconciler(intake=RecruitIntake())
        report = reconciler.reconcile(registry, rng)
    """

    def __init__(
        self,
        policies: Optional[Iterable[DivisionPolicy]] = None,
        intake: Optional[IntakeFn] = None
    ):
        self.policies = resolve_policy_map(policies)
        self.intake = intake

    def reconcile(self, registry: LeagueRegistry, rng: np.random.Generator) -> ReconcileReport:
        """
        Run one reconciliation pass.

        Afterwards every division's active rank scores are exactly 1..N.

        Args:
            registry: League registry (mutated)
            rng: Random source handed to the intake collaborator

        Returns:
            ReconcileReport with before/after snapshots and the moves made
        """
        before = registry.snapshot()
        moves: List[ReconcileMove] = []
        recruited = 0
        unfilled: Dict[str, int] = {}

        buckets: Dict[str, List[Competitor]] = {division: [] for division in DIVISION_ORDER}
        for competitor in registry.active():
            division = competitor.division if competitor.division in buckets else ENTRY_POOL
            competitor.division = division
            buckets[division].append(competitor)
        for bucket in buckets.values():
            bucket.sort(key=rank_order_key)

        def move(competitor: Competitor, to_index: int, move_type: str):
            source = buckets[competitor.division]
            source.remove(competitor)
            target_division = DIVISION_ORDER[to_index]
            target = buckets[target_division]
            if move_type == PROMOTE:
                # joins the tail of the division above
                competitor.rank_score = (target[-1].rank_score + 1) if target else 1
                target.append(competitor)
            else:
                # joins the head of the division below
                competitor.rank_score = (target[0].rank_score - 1) if target else 1
                target.insert(0, competitor)
            moves.append(ReconcileMove(competitor.id, competitor.division, target_division, move_type))
            competitor.division = target_division

        def ensure_source(index: int) -> bool:
            nonlocal recruited
            division = DIVISION_ORDER[index]
            if buckets[division]:
                return True
            if division == ENTRY_POOL:
                if self.intake is None:
                    return False
                recruits = self.intake(registry, rng)
                for recruit in recruits:
                    recruit.division = ENTRY_POOL
                    registry.add(recruit)
                    buckets[ENTRY_POOL].append(recruit)
                    moves.append(ReconcileMove(recruit.id, None, ENTRY_POOL, INTAKE))
                recruited += len(recruits)
                return bool(buckets[ENTRY_POOL])
            if not ensure_source(index + 1):
                return False
            move(buckets[DIVISION_ORDER[index + 1]][0], index, PROMOTE)
            return True

        for index, division in enumerate(DIVISION_ORDER):
            if division == ENTRY_POOL:
                continue
            target = resolve_target_headcount(self.policies[division], len(buckets[division]))

            while len(buckets[division]) > target.max:
                move(buckets[division][-1], index + 1, DEMOTE)

            fill_to = target.target if target.fixed else target.min
            while len(buckets[division]) < fill_to:
                if not ensure_source(index + 1):
                    unfilled[division] = fill_to - len(buckets[division])
                    logger.warning("Could not fill %s: %d short", division, unfilled[division])
                    break
                move(buckets[DIVISION_ORDER[index + 1]][0], index, PROMOTE)

        for division, bucket in buckets.items():
            for position, competitor in enumerate(bucket, 1):
                competitor.rank_score = position

        return ReconcileReport(
            before=before,
            after=registry.snapshot(),
            recruited=recruited,
            moves=moves,
            unfilled=unfilled,
        )
