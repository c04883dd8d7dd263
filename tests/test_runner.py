"""
Integration tests for whole tournament cycles and the batch harness.
"""

import tempfile

import numpy as np
import pytest

from src.league.constants import (
    MAKUUCHI,
    JURYO,
    MAKUSHITA,
    SANDANME,
    JONIDAN,
    JONOKUCHI,
    MAEZUMO,
    DIVISION_ORDER,
)
from src.league.errors import MissingCompetitorError
from src.exchange.rules import DEFAULT_BOUNDARY_RULES
from src.population.policy import DivisionPolicy, FIXED, VARIABLE
from src.population.seeding import build_initial_league
from src.simulation.batch import BatchConfig, BatchRunner
from src.simulation.display import (
    format_activation_counts,
    format_exchange_summary,
    format_population_table,
)
from src.simulation.runner import CycleConfig, CycleRunner
from src.simulation.storage import LeagueStorage

SMALL_POLICIES = [
    DivisionPolicy(MAKUUCHI, FIXED, fixed_slots=10),
    DivisionPolicy(JURYO, FIXED, fixed_slots=8),
    DivisionPolicy(MAKUSHITA, FIXED, fixed_slots=12),
    DivisionPolicy(SANDANME, FIXED, fixed_slots=12),
    DivisionPolicy(JONIDAN, VARIABLE, min_slots=8, soft_max_slots=16),
    DivisionPolicy(JONOKUCHI, VARIABLE, min_slots=4, soft_max_slots=12),
]


def small_league(seed, player_division=None):
    rng = np.random.default_rng(seed)
    registry = build_initial_league(rng, policies=SMALL_POLICIES, entry_pool_size=6,
                                    player_division=player_division)
    return registry, rng


def make_runner(seed, cycles=1, player_division=None, **kwargs):
    registry, rng = small_league(seed, player_division)
    config = CycleConfig(
        cycles=cycles,
        policies=SMALL_POLICIES,
        intake_per_cycle=2,
        player_id="PLAYER" if player_division else None,
    )
    return CycleRunner(registry, config, rng=rng, verbose=False, **kwargs)


class TestCycleRunner:
    """Integration tests for CycleRunner."""

    def test_elite_divisions_full_and_active(self):
        """Test that both elite divisions end every cycle at capacity."""
        runner = make_runner(1, cycles=3)
        results = runner.run()

        assert len(results) == 3
        for result in results:
            assert result.population_snapshot.active(MAKUUCHI) == 10
            assert result.population_snapshot.active(JURYO) == 8
        for division, size in ((MAKUUCHI, 10), (JURYO, 8)):
            roster = runner.registry.roster(division)
            assert len(roster) == size
            assert all(c.active for c in roster)

    def test_rank_scores_dense(self):
        runner = make_runner(2, cycles=2)
        runner.run()
        for division in DIVISION_ORDER:
            scores = sorted(c.rank_score for c in runner.registry.roster(division))
            assert scores == list(range(1, len(scores) + 1))

    def test_exchanges_balanced(self):
        runner = make_runner(3, cycles=2)
        for result in runner.run():
            assert len(result.exchanges) == 5
            for outcome in result.exchanges.values():
                assert len(outcome.promoted_ids) == len(outcome.demoted_ids) == outcome.slots

    def test_bout_targets_respected(self):
        runner = make_runner(4)
        result = runner.run_cycle()
        for competitor in runner.registry:
            assert competitor.bouts_done <= competitor.target_bouts
        assert result.diagnostics is not None
        assert result.cycle == 1

    def test_deterministic(self):
        """Test that the same seed gives identical exchanges and final ranks."""
        def run():
            runner = make_runner(5, cycles=2)
            results = runner.run()
            exchanges = [
                {k: o.to_dict() for k, o in result.exchanges.items()}
                for result in results
            ]
            ranks = sorted((c.id, c.division, c.rank_score, c.active) for c in runner.registry)
            return exchanges, ranks

        assert run() == run()

    def test_missing_player_raises(self):
        """Test that a configured but absent player aborts the cycle."""
        registry, rng = small_league(6)
        config = CycleConfig(policies=SMALL_POLICIES, player_id="PLAYER")
        runner = CycleRunner(registry, config, rng=rng, verbose=False)
        with pytest.raises(MissingCompetitorError):
            runner.run_cycle()

    def test_player_flags_reported(self):
        runner = make_runner(7, player_division=JURYO)
        result = runner.run_cycle()
        assert result.player_flags is not None
        assert result.player_flags.competitor_id == "PLAYER"
        assert runner.registry.require("PLAYER").active

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            CycleConfig(cycles=0)
        with pytest.raises(ValueError):
            CycleConfig(intake_per_cycle=-1)

    def test_persistence(self):
        """Test that cycles are persisted when storage is set."""
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LeagueStorage(tmpdir)
            runner = make_runner(8, cycles=2, storage=storage)
            runner.run(run_id="persist_test")

            loaded = LeagueStorage(tmpdir).load_run("persist_test")
            assert loaded is not None
            assert loaded.status == "completed"
            assert loaded.cycles == 2
            assert sorted(loaded.population) == [1, 2]
            assert len(loaded.exchanges) == 10

    def test_exchanged_competitors_keep_assigned_slots(self):
        """Test that promoted end at the tail above and demoted at the head below."""
        runner = make_runner(11, retirement=lambda registry, rng: [])
        result = runner.run_cycle()

        for rule in DEFAULT_BOUNDARY_RULES[:3]:
            outcome = result.exchanges[rule.id]
            upper = [c.id for c in runner.registry.roster(rule.upper_division)]
            lower = [c.id for c in runner.registry.roster(rule.lower_division)]
            assert upper[len(upper) - outcome.slots:] == outcome.promoted_ids
            assert lower[:outcome.slots] == outcome.demoted_ids

    def test_entry_pool_promoted(self):
        """Test that the entry pool moves into Jonokuchi every cycle."""
        runner = make_runner(12, retirement=lambda registry, rng: [])
        pool_ids = {c.id for c in runner.registry.roster(MAEZUMO)}
        result = runner.run_cycle()

        promoted = {p.competitor_id for p in result.entry_promotions}
        assert pool_ids <= promoted
        for promotion in result.entry_promotions:
            competitor = runner.registry.require(promotion.competitor_id)
            if not promotion.returned_to_pool:
                assert competitor.division != MAEZUMO
        assert runner.registry.count(JONOKUCHI) <= 12


class TestBatchRunner:
    """Tests for the batch harness."""

    def test_small_batch(self):
        config = BatchConfig(careers=2, cycles=1, workers=2, policies=SMALL_POLICIES, show_progress=False)
        result = BatchRunner(config).run()

        assert [c.seed for c in result.careers] == [0, 1]
        stats = result.slot_statistics()
        assert len(stats) == 5
        for values in stats.values():
            assert values['max'] >= values['mean'] >= 0

    def test_invalid_batch(self):
        with pytest.raises(ValueError):
            BatchConfig(careers=0)


class TestDisplay:
    """Tests for terminal formatting."""

    def test_population_table(self):
        runner = make_runner(9)
        before = runner.registry.snapshot()
        result = runner.run_cycle()
        table = format_population_table(result.population_snapshot, before)
        for division in DIVISION_ORDER:
            assert division in table

    def test_exchange_summary(self):
        runner = make_runner(10)
        result = runner.run_cycle()
        summary = format_exchange_summary(result.exchanges)
        assert "MakuuchiJuryo" in summary

    def test_no_activations(self):
        assert format_activation_counts([]) == "No boundary activations"
