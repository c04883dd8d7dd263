"""
Cycle runner that drives the league through whole tournament cycles.

One cycle: schedule and fight all fifteen days, resolve boundary exchanges,
apply them, re-rank by performance, retire, recruit, promote the entry pool
and reconcile headcounts.
"""

import logging
import time
from datetime import datetime
from typing import List, Dict, Optional, Sequence
from dataclasses import dataclass, field

import numpy as np

from src.league.constants import DIVISION_ORDER, RANKED_DIVISIONS
from src.league.divisions import bouts_for_division
from src.league.rank_codec import layouts_for_counts
from src.league.registry import LeagueRegistry, PopulationSnapshot
from src.torikumi.basho import BashoScheduler, BashoDiagnostics
from src.torikumi.boundary import BoundaryActivation, BoundaryConfig
from src.torikumi.calendar import create_bout_day_map, make_eligibility
from src.torikumi.scheduler import SchedulerConfig
from src.exchange.resolver import BoundaryExchangeResolver, ExchangeConfig, ExchangeOutcome
from src.exchange.apply import apply_exchanges
from src.exchange.flags import CommitteeFlags, resolve_committee_flags
from src.population.policy import DivisionPolicy, FIXED, resolve_policy_map
from src.population.reconciler import LeaguePopulationReconciler, ReconcileReport
from src.population.retirement import RetirementModel, advance_careers
from src.population.intake import RecruitIntake
from src.population.entry import EntryPromotion, promote_entry_pool
from src.population.ordering import reorder_by_performance
from src.simulation.bout import BoutModel
from src.simulation.storage import LeagueStorage
from src.simulation.display import (
    format_cycle_header,
    format_exchange_summary,
    format_population_table,
    format_player_flags,
)

logger = logging.getLogger(__name__)


@dataclass
class CycleConfig:
    """Configuration for a run of tournament cycles."""
    cycles: int = 1
    seed: Optional[int] = None
    player_id: Optional[str] = None
    policies: Optional[Sequence[DivisionPolicy]] = None
    intake_per_cycle: int = 8
    stable_count: int = 45
    retirement_bias: float = 1.0

    def __post_init__(self):
        if self.cycles < 1:
            raise ValueError("Need at least one cycle")
        if self.intake_per_cycle < 0:
            raise ValueError("Intake per cycle cannot be negative")


@dataclass
class CycleResult:
    """Everything one cycle returns to the caller."""
    cycle: int
    exchanges: Dict[str, ExchangeOutcome]
    population_snapshot: PopulationSnapshot
    boundary_activations: List[BoundaryActivation]
    reconcile_report: ReconcileReport
    player_flags: Optional[CommitteeFlags] = None
    retired_ids: List[str] = field(default_factory=list)
    applied_slots: Dict[str, int] = field(default_factory=dict)
    diagnostics: Optional[BashoDiagnostics] = None
    entry_promotions: List[EntryPromotion] = field(default_factory=list)


class CycleRunner:
    """
    Orchestrates tournament cycles over one league registry.

    Usage:
        runner = CycleRunner(registry, CycleConfig(cycles=6, seed=7))
        results = runner.run()
    """

    def __init__(
        self,
        registry: LeagueRegistry,
        config: Optional[CycleConfig] = None,
        rng: Optional[np.random.Generator] = None,
        bout_model: Optional[BoutModel] = None,
        retirement: Optional[RetirementModel] = None,
        intake: Optional[RecruitIntake] = None,
        scheduler_config: Optional[SchedulerConfig] = None,
        boundary_config: Optional[BoundaryConfig] = None,
        exchange_config: Optional[ExchangeConfig] = None,
        storage: Optional[LeagueStorage] = None,
        verbose: bool = True
    ):
        """
        Initialize the cycle runner.

        Args:
            registry: League registry, mutated in place every cycle
            config: Cycle configuration
            rng: Random source (defaults to one seeded from config.seed)
            bout_model: Bout outcome collaborator
            retirement: Retirement collaborator
            intake: Intake collaborator
            scheduler_config: Daily scheduler tuning
            boundary_config: Boundary pairing tuning
            exchange_config: Exchange slot tuning
            storage: Optional storage backend; cycles are persisted when set
            verbose: Print cycle summaries
        """
        self.registry = registry
        self.config = config or CycleConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)
        self.bout_model = bout_model or BoutModel()
        self.retirement = retirement or RetirementModel(bias=self.config.retirement_bias)
        self.intake = intake or RecruitIntake(
            batch_size=max(1, self.config.intake_per_cycle),
            stable_count=self.config.stable_count
        )
        self.basho = BashoScheduler(scheduler_config, boundary_config)

        if exchange_config is None:
            exchange_config = ExchangeConfig()
            if self.config.player_id:
                exchange_config.player_id = self.config.player_id
        self.resolver = BoundaryExchangeResolver(config=exchange_config)
        self.policies = resolve_policy_map(self.config.policies)
        self.reconciler = LeaguePopulationReconciler(self.config.policies, intake=self.intake)
        self.storage = storage
        self.verbose = verbose
        self.cycles_run = 0

    def _prepare_tournament(self):
        """Reset every active competitor's record and bout target."""
        for competitor in self.registry.active():
            competitor.reset_record(bouts_for_division(competitor.division))

    def _vacancies(self, counts: Dict[str, int]) -> Dict[str, int]:
        vacancies = {}
        for division in RANKED_DIVISIONS:
            policy = self.policies[division]
            if policy.mode == FIXED:
                vacancies[division] = max(0, policy.fixed_slots - counts.get(division, 0))
        return vacancies

    def run_cycle(self) -> CycleResult:
        """
        Run one complete tournament cycle.

        Raises:
            MissingCompetitorError: If the tracked player is configured but absent

        Returns:
            CycleResult for the cycle
        """
        cycle = self.cycles_run + 1
        player_id = self.config.player_id
        if player_id:
            self.registry.require(player_id, "cycle roster")

        self._prepare_tournament()
        rosters = self.registry.rosters()
        competitors = [c for division in DIVISION_ORDER for c in rosters[division]]
        counts = {division: len(members) for division, members in rosters.items()}

        if self.verbose:
            print(format_cycle_header(cycle, self.config.cycles, len(competitors)))

        day_map = create_bout_day_map(competitors, self.rng)
        layouts = layouts_for_counts({d: max(1, counts.get(d, 0)) for d in RANKED_DIVISIONS})
        schedule = self.basho.run(
            competitors,
            self.rng,
            on_pair=self.bout_model.resolve_pair,
            eligibility=make_eligibility(day_map),
            layouts=layouts,
            vacancy_by_division=self._vacancies(counts)
        )

        outcomes = self.resolver.resolve_all(self.registry)
        player_flags = None
        if player_id:
            player_flags = resolve_committee_flags(self.registry, outcomes, player_id, self.resolver.rules)
        divisions_before = {c.id: c.division for c in self.registry.active()}
        applied = apply_exchanges(self.registry, outcomes, self.resolver.rules)
        moved_ids = [
            c.id for c in self.registry.active()
            if divisions_before.get(c.id) != c.division
        ]
        reorder_by_performance(self.registry, pinned_ids=moved_ids)

        advance_careers(self.registry)
        retired = self.retirement(self.registry, self.rng)
        # Recruits at least replace the retirees
        intake_count = max(self.config.intake_per_cycle, len(retired))
        if intake_count > 0:
            for recruit in self.intake(self.registry, self.rng, intake_count):
                self.registry.add(recruit)
        entry_promotions = promote_entry_pool(self.registry, self.rng, self.config.policies)

        before = self.registry.snapshot()
        report = self.reconciler.reconcile(self.registry, self.rng)
        snapshot = self.registry.snapshot()
        self.cycles_run = cycle

        if self.verbose:
            print(format_exchange_summary(outcomes))
            print()
            print(format_population_table(snapshot, before))
            if player_flags is not None:
                print(f"\nPlayer: {format_player_flags(player_flags)}")

        return CycleResult(
            cycle=cycle,
            exchanges=outcomes,
            population_snapshot=snapshot,
            boundary_activations=schedule.diagnostics.boundary_activations,
            reconcile_report=report,
            player_flags=player_flags,
            retired_ids=retired,
            applied_slots=applied,
            diagnostics=schedule.diagnostics,
            entry_promotions=entry_promotions
        )

    def _generate_run_id(self) -> str:
        """Generate a unique run ID."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"run_{timestamp}"

    def run(self, run_id: Optional[str] = None) -> List[CycleResult]:
        """
        Run all configured cycles.

        Args:
            run_id: Optional ID used when a storage backend is set

        Returns:
            One CycleResult per cycle
        """
        if self.storage is not None:
            run_id = run_id or self._generate_run_id()
            self.storage.create_run(run_id, seed=self.config.seed, config={
                'cycles': self.config.cycles,
                'player_id': self.config.player_id,
                'intake_per_cycle': self.config.intake_per_cycle,
                'stable_count': self.config.stable_count,
            })

        results = []
        start_time = time.time()
        for _ in range(self.config.cycles):
            result = self.run_cycle()
            results.append(result)
            if self.storage is not None:
                self.storage.save_cycle(run_id, result)

        if self.storage is not None:
            self.storage.complete_run(run_id)

        total_time = time.time() - start_time
        logger.info("Ran %d cycles in %.1fs", len(results), total_time)
        if self.verbose:
            print(f"\nSimulation completed in {total_time:.1f}s ({len(results)} cycles)")

        return results
