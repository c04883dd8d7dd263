"""
Unit tests for run storage.
"""

import tempfile

import pytest

from src.league.registry import DivisionCount, PopulationSnapshot
from src.exchange.resolver import ExchangeOutcome, MANDATORY_ABSENCE_DEMOTION
from src.population.reconciler import ReconcileReport
from src.simulation.runner import CycleResult
from src.simulation.storage import LeagueStorage
from src.torikumi.boundary import BoundaryActivation, SHORTAGE, LATE_EVAL


def make_result(cycle):
    snapshot = PopulationSnapshot(counts={
        'Makuuchi': DivisionCount(total=44, active=42),
        'Juryo': DivisionCount(total=28, active=28),
    })
    return CycleResult(
        cycle=cycle,
        exchanges={
            'MakuuchiJuryo': ExchangeOutcome('MakuuchiJuryo', slots=2,
                                             promoted_ids=['j1', 'j2'], demoted_ids=['k41', 'k42']),
            'JuryoMakushita': ExchangeOutcome('JuryoMakushita', slots=1,
                                              promoted_ids=['m1'], demoted_ids=['PLAYER'],
                                              player_demoted=True,
                                              reason=MANDATORY_ABSENCE_DEMOTION),
        },
        population_snapshot=snapshot,
        boundary_activations=[
            BoundaryActivation(day=3, boundary_id='JuryoMakushita', reasons=[SHORTAGE], pair_count=2),
            BoundaryActivation(day=13, boundary_id='JuryoMakushita', reasons=[SHORTAGE, LATE_EVAL], pair_count=1),
        ],
        reconcile_report=ReconcileReport(before=snapshot, after=snapshot),
    )


class TestLeagueStorage:
    """Tests for league run storage."""

    @pytest.fixture
    def temp_storage(self):
        """Create a temporary storage for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            storage = LeagueStorage(tmpdir)
            yield storage

    def test_create_run(self, temp_storage):
        """Test creating a run record."""
        run_id = temp_storage.create_run('test_run', seed=7, config={'cycles': 2})
        assert run_id == 'test_run'

        loaded = temp_storage.load_run('test_run')
        assert loaded.status == 'in_progress'
        assert loaded.seed == 7
        assert loaded.config == {'cycles': 2}
        assert loaded.cycles == 0

    def test_missing_run(self, temp_storage):
        assert temp_storage.load_run('nope') is None

    def test_save_and_load_cycle(self, temp_storage):
        """Test saving and loading one cycle's results."""
        temp_storage.create_run('test')
        temp_storage.save_cycle('test', make_result(1))

        loaded = temp_storage.load_run('test')
        assert loaded.cycles == 1
        assert loaded.population[1]['Makuuchi'] == {'total': 44, 'active': 42}
        assert len(loaded.exchanges) == 2

        juryo = loaded.exchanges_for('JuryoMakushita')[0]
        assert juryo.demoted_ids == ['PLAYER']
        assert juryo.player_demoted
        assert juryo.reason == MANDATORY_ABSENCE_DEMOTION

    def test_total_slots(self, temp_storage):
        temp_storage.create_run('test')
        temp_storage.save_cycle('test', make_result(1))
        temp_storage.save_cycle('test', make_result(2))

        loaded = temp_storage.load_run('test')
        assert loaded.cycles == 2
        assert loaded.total_slots() == {'MakuuchiJuryo': 4, 'JuryoMakushita': 2}

    def test_load_activations(self, temp_storage):
        temp_storage.create_run('test')
        temp_storage.save_cycle('test', make_result(1))
        temp_storage.save_cycle('test', make_result(2))

        assert len(temp_storage.load_activations('test')) == 4
        second = temp_storage.load_activations('test', cycle=2)
        assert [a['day'] for a in second] == [3, 13]
        assert second[1]['reasons'] == [SHORTAGE, LATE_EVAL]

    def test_complete_run(self, temp_storage):
        """Test completing a run."""
        temp_storage.create_run('test')
        temp_storage.complete_run('test')

        loaded = temp_storage.load_run('test')
        assert loaded.status == 'completed'
        assert loaded.completed_at is not None

    def test_list_runs(self, temp_storage):
        """Test listing runs."""
        temp_storage.create_run('test1')
        temp_storage.create_run('test2')

        runs = temp_storage.list_runs()
        assert len(runs) == 2
        assert {r['run_id'] for r in runs} == {'test1', 'test2'}
