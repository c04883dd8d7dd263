"""
Simulation drivers around the engine.

Provides:
- BoutModel: logistic bout outcome collaborator
- CycleRunner: runs whole tournament cycles over a registry
- BatchRunner: runs independent careers in parallel
- LeagueStorage: persists run results
"""

from src.simulation.bout import BoutModel, BoutResult
from src.simulation.runner import CycleRunner, CycleConfig, CycleResult
from src.simulation.batch import BatchRunner, BatchConfig, BatchResult, run_career
from src.simulation.storage import LeagueStorage, RunRecord, StoredExchange
from src.simulation.display import (
    format_population_table,
    format_exchange_summary,
    format_activation_counts,
    format_batch_summary,
)

__all__ = [
    'BoutModel',
    'BoutResult',
    'CycleRunner',
    'CycleConfig',
    'CycleResult',
    'BatchRunner',
    'BatchConfig',
    'BatchResult',
    'run_career',
    'LeagueStorage',
    'RunRecord',
    'StoredExchange',
    'format_population_table',
    'format_exchange_summary',
    'format_activation_counts',
    'format_batch_summary',
]
