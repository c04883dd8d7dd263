"""
Unit tests for headcount policies, the population reconciler and the
seeding, intake and retirement collaborators.
"""

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
    RANKED_DIVISIONS,
    ELITE_DIVISIONS,
)
from src.league.models import Competitor
from src.league.registry import LeagueRegistry
from src.population.entry import (
    promote_entry_pool,
    qualifier_win_probability,
    rise_band_for,
    rise_band_slot_range,
)
from src.population.intake import RecruitIntake
from src.population.ordering import reorder_by_performance
from src.population.policy import (
    DivisionPolicy,
    FIXED,
    VARIABLE,
    resolve_target_headcount,
)
from src.population.reconciler import DEMOTE, INTAKE, PROMOTE, LeaguePopulationReconciler
from src.population.retirement import RetirementModel, advance_careers, losing_streak
from src.population.seeding import build_initial_league


def make(cid, division, rank, **kwargs):
    return Competitor(id=cid, shikona=cid, stable_id="s", division=division, rank_score=rank, **kwargs)


def assert_dense(registry):
    for division in DIVISION_ORDER:
        scores = sorted(c.rank_score for c in registry.roster(division))
        assert scores == list(range(1, len(scores) + 1))


def open_policies(**overrides):
    """Every ranked division VARIABLE with no minimum, plus overrides."""
    policies = {d: DivisionPolicy(d, VARIABLE, min_slots=0) for d in RANKED_DIVISIONS}
    policies.update(overrides)
    return list(policies.values())


class TestHeadcountTarget:
    """Tests for resolving policy bounds."""

    def test_fixed(self):
        target = resolve_target_headcount(DivisionPolicy(MAKUUCHI, FIXED, fixed_slots=42), 30)
        assert (target.min, target.max, target.target, target.fixed) == (42, 42, 42, True)

    def test_variable_clamps_current(self):
        policy = DivisionPolicy(JONOKUCHI, VARIABLE, min_slots=20, soft_max_slots=64)
        assert resolve_target_headcount(policy, 10).target == 20
        assert resolve_target_headcount(policy, 40).target == 40
        assert resolve_target_headcount(policy, 100).target == 64

    def test_unbounded_variable(self):
        policy = DivisionPolicy(MAEZUMO, VARIABLE, min_slots=0)
        assert resolve_target_headcount(policy, 500).max == float("inf")

    def test_invalid_policies(self):
        with pytest.raises(ValueError):
            DivisionPolicy(MAKUUCHI, FIXED, fixed_slots=0)
        with pytest.raises(ValueError):
            DivisionPolicy("Nowhere", VARIABLE)
        with pytest.raises(ValueError):
            DivisionPolicy(JONIDAN, "ELASTIC")


class TestReconciler:
    """Tests for LeaguePopulationReconciler."""

    @pytest.fixture
    def league(self):
        return build_initial_league(np.random.default_rng(21))

    def test_refills_makuuchi_after_retirements(self, league):
        """Test that five retirements at the top are refilled from the division below."""
        juryo_top = [c.id for c in league.roster(JURYO)[:5]]
        for competitor in league.roster(MAKUUCHI)[:5]:
            competitor.active = False

        report = LeaguePopulationReconciler().reconcile(league, np.random.default_rng(0))

        assert league.count(MAKUUCHI) == 42
        assert league.count(JURYO) == 28
        into_makuuchi = [m for m in report.moves_of(PROMOTE) if m.to_division == MAKUUCHI]
        assert [m.competitor_id for m in into_makuuchi] == juryo_top
        assert [c.id for c in league.roster(MAKUUCHI)[-5:]] == juryo_top
        assert report.unfilled == {}
        assert_dense(league)

    def test_refills_empty_juryo(self, league):
        """Test that a wholly retired Juryo is refilled from Makushita."""
        makushita_top = [c.id for c in league.roster(MAKUSHITA)[:28]]
        for competitor in league.roster(JURYO):
            competitor.active = False

        LeaguePopulationReconciler().reconcile(league, np.random.default_rng(0))

        for division in ELITE_DIVISIONS:
            roster = league.roster(division)
            assert len(roster) == (42 if division == MAKUUCHI else 28)
            assert all(c.active for c in roster)
        assert [c.id for c in league.roster(JURYO)] == makushita_top
        assert_dense(league)

    def test_cascades_to_intake(self):
        """Test that an empty league below the top fills through the entry pool."""
        policies = [DivisionPolicy(d, FIXED, fixed_slots=2) for d in RANKED_DIVISIONS]
        registry = LeagueRegistry([
            make("top1", MAKUUCHI, 1),
            make("top2", MAKUUCHI, 2, active=False),
        ])
        reconciler = LeaguePopulationReconciler(policies=policies, intake=RecruitIntake(batch_size=1))

        report = reconciler.reconcile(registry, np.random.default_rng(4))

        assert report.recruited == 11
        assert len(report.moves_of(INTAKE)) == report.recruited
        for division in RANKED_DIVISIONS:
            assert registry.count(division) == 2
        assert registry.count(MAEZUMO) == 0
        assert report.unfilled == {}
        assert_dense(registry)

    def test_no_intake_reports_unfilled(self):
        """Test that missing supply is reported, not raised."""
        policies = [DivisionPolicy(d, FIXED, fixed_slots=2) for d in RANKED_DIVISIONS]
        registry = LeagueRegistry([make("top1", MAKUUCHI, 1)])

        report = LeaguePopulationReconciler(policies=policies).reconcile(registry, np.random.default_rng(4))

        assert report.unfilled[MAKUUCHI] == 1
        assert report.unfilled[JONOKUCHI] == 2
        assert report.recruited == 0

    def test_demotes_worst_over_soft_max(self):
        """Test that an over-full variable division sheds its worst members downward."""
        policies = open_policies(**{JONOKUCHI: DivisionPolicy(JONOKUCHI, VARIABLE, min_slots=0, soft_max_slots=3)})
        registry = LeagueRegistry([make(f"k{i}", JONOKUCHI, i) for i in range(1, 6)])

        report = LeaguePopulationReconciler(policies=policies).reconcile(registry, np.random.default_rng(0))

        assert [c.id for c in registry.roster(JONOKUCHI)] == ["k1", "k2", "k3"]
        assert [c.id for c in registry.roster(MAEZUMO)] == ["k4", "k5"]
        assert len(report.moves_of(DEMOTE)) == 2
        assert_dense(registry)

    def test_variable_filled_to_minimum_only(self):
        policies = open_policies(**{JONIDAN: DivisionPolicy(JONIDAN, VARIABLE, min_slots=3, soft_max_slots=10)})
        registry = LeagueRegistry([make("d1", JONIDAN, 1)] + [make(f"k{i}", JONOKUCHI, i) for i in range(1, 7)])

        LeaguePopulationReconciler(policies=policies).reconcile(registry, np.random.default_rng(0))

        assert [c.id for c in registry.roster(JONIDAN)] == ["d1", "k1", "k2"]
        assert registry.count(JONOKUCHI) == 4

    def test_snapshots(self, league):
        for competitor in league.roster(SANDANME)[:3]:
            competitor.active = False
        report = LeaguePopulationReconciler().reconcile(league, np.random.default_rng(0))
        assert report.before.active(SANDANME) == 177
        assert report.after.active(SANDANME) == 180
        assert report.after.total(SANDANME) == 183


class TestSeeding:
    """Tests for the initial league."""

    def test_default_headcounts(self):
        registry = build_initial_league(np.random.default_rng(1))
        assert registry.count(MAKUUCHI) == 42
        assert registry.count(JURYO) == 28
        assert registry.count(JONIDAN) == 220
        assert registry.count(MAEZUMO) == 12
        assert_dense(registry)

    def test_player_placed_at_bottom(self):
        registry = build_initial_league(np.random.default_rng(1), player_division=JURYO)
        player = registry.require("PLAYER")
        assert player.is_player
        assert player.division == JURYO
        assert player.rank_score == 28

    def test_stronger_ranked_higher(self):
        registry = build_initial_league(np.random.default_rng(2))
        abilities = [c.ability for c in registry.roster(MAKUSHITA)]
        assert abilities == sorted(abilities, reverse=True)

    def test_unknown_player_division(self):
        with pytest.raises(ValueError):
            build_initial_league(np.random.default_rng(1), player_division="Nowhere")


class TestIntake:
    """Tests for RecruitIntake."""

    def test_batch(self):
        recruits = RecruitIntake(batch_size=3)(LeagueRegistry(), np.random.default_rng(0))
        assert [r.id for r in recruits] == ["R00001", "R00002", "R00003"]
        assert all(r.division == MAEZUMO for r in recruits)

    def test_skips_taken_ids(self):
        registry = LeagueRegistry([make("R00001", MAEZUMO, 1)])
        recruits = RecruitIntake()(registry, np.random.default_rng(0), count=2)
        assert [r.id for r in recruits] == ["R00002", "R00003"]


class TestRetirement:
    """Tests for career progression and retirement."""

    def test_advance_careers(self):
        competitor = make("a", JONIDAN, 1, wins=3, losses=4, target_bouts=7, entry_age=20)
        registry = LeagueRegistry([competitor])
        for _ in range(6):
            advance_careers(registry)
        assert competitor.career_basho == 6
        assert competitor.age == 21
        assert competitor.recent_results == [(3, 4)] * 6

    def test_losing_streak(self):
        competitor = make("a", JONIDAN, 1, recent_results=[(3, 4), (4, 3), (2, 5), (1, 6)])
        assert losing_streak(competitor) == 2

    def test_certain_at_fifty(self):
        old = make("old", JONIDAN, 1, age=50)
        young = make("young", JONIDAN, 2, age=20, ability=90)
        player = make("PLAYER", JONIDAN, 3, age=50, is_player=True)
        registry = LeagueRegistry([old, young, player])

        retired = RetirementModel()(registry, np.random.default_rng(0))

        assert retired == ["old"]
        assert not old.active
        assert player.active

    def test_chance_capped(self):
        model = RetirementModel(bias=100.0)
        competitor = make("a", JONIDAN, 1, age=45, ability=40)
        assert model.retirement_chance(competitor, 10) == pytest.approx(0.92)


class TestPerformanceOrdering:
    """Tests for re-ranking between tournaments."""

    def test_reorder(self):
        registry = LeagueRegistry([
            make("a", MAKUSHITA, 1, wins=1, losses=6),
            make("b", MAKUSHITA, 2, wins=6, losses=1),
            make("c", MAKUSHITA, 3, wins=4, losses=3),
        ])
        reorder_by_performance(registry)
        assert [c.id for c in registry.roster(MAKUSHITA)] == ["b", "c", "a"]
        assert [c.rank_score for c in registry.roster(MAKUSHITA)] == [1, 2, 3]

    def test_pinned_keep_position(self):
        """Test that pinned competitors hold their slot while the rest re-rank."""
        registry = LeagueRegistry([
            make("a", MAKUSHITA, 1, wins=1, losses=6),
            make("b", MAKUSHITA, 2, wins=6, losses=1),
            make("c", MAKUSHITA, 3, wins=4, losses=3),
            make("d", MAKUSHITA, 4, wins=7, losses=0),
        ])
        reorder_by_performance(registry, pinned_ids=["d"])
        assert [c.id for c in registry.roster(MAKUSHITA)] == ["b", "c", "a", "d"]
        assert [c.rank_score for c in registry.roster(MAKUSHITA)] == [1, 2, 3, 4]


class TestEntryPoolPromotion:
    """Tests for moving the entry pool into Jonokuchi."""

    def pool_registry(self, sitting=10, pool=6):
        members = [make(f"k{i:02d}", JONOKUCHI, i, ability=54.0) for i in range(1, sitting + 1)]
        members += [make(f"e{i:02d}", MAEZUMO, i, ability=46.0) for i in range(1, pool + 1)]
        return LeagueRegistry(members)

    def test_rise_bands(self):
        assert rise_band_for(3) == 1
        assert rise_band_for(2) == 2
        assert rise_band_for(1) == 3
        assert rise_band_for(0) == 3

    def test_slot_ranges(self):
        assert [rise_band_slot_range(b, 10) for b in (1, 2, 3)] == [(1, 2), (3, 4), (5, 5)]
        assert [rise_band_slot_range(b, 40) for b in (1, 2, 3)] == [(5, 8), (12, 15), (19, 20)]
        assert rise_band_slot_range(1, 0) == (1, 1)

    def test_win_probability_clamped(self):
        assert qualifier_win_probability(40.0) == pytest.approx(0.25)
        assert qualifier_win_probability(500.0) == pytest.approx(0.88)
        assert qualifier_win_probability(-500.0) == pytest.approx(0.12)

    def test_full_pool_ranked_by_band(self):
        """Test that every newcomer lands in Jonokuchi, better bands ranked higher."""
        registry = self.pool_registry()
        promotions = promote_entry_pool(registry, np.random.default_rng(3))

        assert len(promotions) == 6
        assert registry.count(MAEZUMO) == 0
        assert registry.count(JONOKUCHI) == 16
        assert_dense(registry)

        ranks = {c.id: c.rank_score for c in registry.roster(JONOKUCHI)}
        for p in promotions:
            low, high = rise_band_slot_range(p.rise_band, 10)
            assert low <= p.target_slot <= high
            assert not p.returned_to_pool
        ordered = sorted(promotions, key=lambda p: ranks[p.competitor_id])
        assert [p.rise_band for p in ordered] == sorted(p.rise_band for p in promotions)

        sitting = [c.id for c in registry.roster(JONOKUCHI) if c.id.startswith("k")]
        assert sitting == [f"k{i:02d}" for i in range(1, 11)]

    def test_overflow_returns_to_pool(self):
        """Test that members beyond the soft maximum go back to the entry pool."""
        registry = self.pool_registry()
        policies = [DivisionPolicy(JONOKUCHI, VARIABLE, min_slots=4, soft_max_slots=12)]
        promotions = promote_entry_pool(registry, np.random.default_rng(4), policies)

        assert registry.count(JONOKUCHI) == 12
        assert registry.count(MAEZUMO) == 4
        assert_dense(registry)
        returned = {p.competitor_id for p in promotions if p.returned_to_pool}
        pool_ids = {c.id for c in registry.roster(MAEZUMO)}
        assert returned == {i for i in pool_ids if i.startswith("e")}

    def test_empty_pool(self):
        registry = self.pool_registry(pool=0)
        assert promote_entry_pool(registry, np.random.default_rng(5)) == []
        assert registry.count(JONOKUCHI) == 10
