"""
Per-day orchestration of a whole tournament's schedule.

Each day: late bubble reservations, strict within-division pairing of everyone
else, then boundary pairing over the leftovers (reserved competitors first),
then a fully staged retry on whatever each division still has left.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np

from src.league.constants import DIVISION_ORDER, ENTRY_POOL
from src.league.models import Competitor
from src.league.rank_codec import DivisionLayout
from src.league.registry import rank_order_key
from src.torikumi.boundary import BoundaryActivation, BoundaryConfig, BoundaryPairingScheduler
from src.torikumi.calendar import EligibilityFn, make_eligibility
from src.torikumi.constraints import DEFAULT_STAGES, STRICT, STRICT_ONLY, FacedMap, create_faced_map
from src.torikumi.scheduler import BoutPair, DailyMatchupScheduler, SchedulerConfig

logger = logging.getLogger(__name__)

PairCallback = Callable[[BoutPair, np.random.Generator], None]


@dataclass
class DaySchedule:
    """Everything scheduled on one day."""
    day: int
    pairs: List[BoutPair] = field(default_factory=list)
    bye_ids: List[str] = field(default_factory=list)
    activations: List[BoundaryActivation] = field(default_factory=list)


@dataclass
class BashoDiagnostics:
    """Schedule health for a whole tournament."""
    boundary_activations: List[BoundaryActivation] = field(default_factory=list)
    remaining_target_by_id: Dict[str, int] = field(default_factory=dict)
    relaxed_pairs: int = 0
    boundary_pairs: int = 0

    @property
    def unscheduled_bouts(self) -> int:
        return sum(self.remaining_target_by_id.values())


@dataclass
class BashoSchedule:
    days: List[DaySchedule]
    diagnostics: BashoDiagnostics

    @property
    def total_pairs(self) -> int:
        return sum(len(day.pairs) for day in self.days)


class BashoScheduler:
    """
    Schedules every day of a tournament across all divisions.

    Usage:
        basho = BashoScheduler()
        schedule = basho.run(competitors, rng, on_pair=bout_model.resolve_pair)
    """

    def __init__(
        self,
        config: Optional[SchedulerConfig] = None,
        boundary_config: Optional[BoundaryConfig] = None
    ):
        self.config = config or SchedulerConfig()
        self.scheduler = DailyMatchupScheduler(self.config)
        self.boundary = BoundaryPairingScheduler(boundary_config, self.config)

    def schedule_day(
        self,
        competitors: List[Competitor],
        faced: FacedMap,
        day: int,
        rng: np.random.Generator,
        eligibility: Optional[EligibilityFn] = None,
        layouts: Optional[Dict[str, DivisionLayout]] = None,
        vacancy_by_division: Optional[Dict[str, int]] = None
    ) -> DaySchedule:
        """
        Schedule one day.

        Pairs are marked into `faced` and `bouts_done` is incremented for
        both sides of every pair.

        Args:
            competitors: Whole league for the tournament
            faced: Opponents met so far (mutated)
            day: Tournament day
            rng: Random source
            eligibility: Who may fight today (defaults to the parity calendar)
            layouts: Division layouts for boundary band decoding
            vacancy_by_division: Known open slots per division
        """
        eligibility = eligibility or make_eligibility()
        by_division: Dict[str, List[Competitor]] = {d: [] for d in DIVISION_ORDER if d != ENTRY_POOL}
        for competitor in competitors:
            if competitor.division in by_division and eligibility(competitor, day):
                by_division[competitor.division].append(competitor)

        for pool in by_division.values():
            pool.sort(key=rank_order_key)
        reservations = self.boundary.reserve_late_candidates(by_division, day, layouts)
        reserved_ids = {c.id for upper, lower in reservations.values() for c in upper + lower}

        pairs: List[BoutPair] = []
        leftovers: Dict[str, List[Competitor]] = {}
        for division, pool in by_division.items():
            within = [c for c in pool if c.id not in reserved_ids]
            result = self.scheduler.schedule(within, faced, day, rng, stages=STRICT_ONLY)
            pairs.extend(result.pairs)
            by_id = {c.id: c for c in within}
            leftovers[division] = [by_id[i] for i in result.bye_ids]
            leftovers[division].extend(c for c in pool if c.id in reserved_ids)

        boundary_pairs, activations = self.boundary.pair_boundaries(
            leftovers, faced, day, layouts=layouts, vacancy_by_division=vacancy_by_division,
            reservations=reservations
        )
        pairs.extend(boundary_pairs)

        bye_ids: List[str] = []
        for division, remaining in leftovers.items():
            if len(remaining) >= 2:
                retry = self.scheduler.schedule(remaining, faced, day, rng, stages=DEFAULT_STAGES)
                pairs.extend(retry.pairs)
                bye_ids.extend(retry.bye_ids)
            else:
                bye_ids.extend(c.id for c in remaining)

        for pair in pairs:
            pair.east.bouts_done += 1
            pair.west.bouts_done += 1

        return DaySchedule(day=day, pairs=pairs, bye_ids=bye_ids, activations=activations)

    def run(
        self,
        competitors: List[Competitor],
        rng: np.random.Generator,
        on_pair: Optional[PairCallback] = None,
        eligibility: Optional[EligibilityFn] = None,
        layouts: Optional[Dict[str, DivisionLayout]] = None,
        vacancy_by_division: Optional[Dict[str, int]] = None,
        faced: Optional[FacedMap] = None
    ) -> BashoSchedule:
        """
        Schedule and resolve every day of a tournament.

        `on_pair` is called once per scheduled pair, in schedule order, before
        the next day is scheduled, so results feed the next day's sort.

        Returns:
            BashoSchedule with every day and the tournament diagnostics
        """
        faced = faced if faced is not None else create_faced_map(competitors)
        days = []
        diagnostics = BashoDiagnostics()

        for day in range(1, self.config.total_days + 1):
            schedule = self.schedule_day(
                competitors, faced, day, rng,
                eligibility=eligibility,
                layouts=layouts,
                vacancy_by_division=vacancy_by_division
            )
            if on_pair is not None:
                for pair in schedule.pairs:
                    on_pair(pair, rng)
            diagnostics.boundary_activations.extend(schedule.activations)
            diagnostics.boundary_pairs += sum(1 for p in schedule.pairs if p.is_boundary)
            diagnostics.relaxed_pairs += sum(1 for p in schedule.pairs if p.stage != STRICT.name)
            days.append(schedule)

        diagnostics.remaining_target_by_id = {
            c.id: c.remaining_bouts for c in competitors
            if c.active and c.remaining_bouts > 0
        }
        if diagnostics.unscheduled_bouts:
            logger.debug("%d bouts left unscheduled across %d competitors",
                         diagnostics.unscheduled_bouts, len(diagnostics.remaining_target_by_id))

        return BashoSchedule(days=days, diagnostics=diagnostics)
