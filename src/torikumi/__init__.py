"""
Torikumi (bout scheduling) for one tournament.

Provides:
- DailyMatchupScheduler: phase-aware greedy pairing within a division
- BoundaryPairingScheduler: cross-division pairing at division seams
- BashoScheduler: per-day orchestration across the whole league
- Constraint stages and tie-break strategies
"""

from src.torikumi.constraints import (
    PairConstraints,
    STRICT,
    RELAX_REMATCH,
    RELAX_STABLE,
    DEFAULT_STAGES,
    create_faced_map,
    is_valid_pair,
    mark_faced,
)
from src.torikumi.tiebreak import RandomTieBreak, HashTieBreak
from src.torikumi.scheduler import (
    DailyMatchupScheduler,
    SchedulerConfig,
    BoutPair,
    DailyMatchups,
    resolve_phase,
    pair_distance,
)
from src.torikumi.boundary import (
    BoundaryPairingScheduler,
    BoundaryConfig,
    BoundaryActivation,
    BoundaryBandSpec,
    RankNumberBand,
)
from src.torikumi.calendar import build_lower_bout_days, create_bout_day_map, make_eligibility
from src.torikumi.basho import BashoScheduler, BashoSchedule, DaySchedule, BashoDiagnostics

__all__ = [
    'PairConstraints',
    'STRICT',
    'RELAX_REMATCH',
    'RELAX_STABLE',
    'DEFAULT_STAGES',
    'create_faced_map',
    'is_valid_pair',
    'mark_faced',
    'RandomTieBreak',
    'HashTieBreak',
    'DailyMatchupScheduler',
    'SchedulerConfig',
    'BoutPair',
    'DailyMatchups',
    'resolve_phase',
    'pair_distance',
    'BoundaryPairingScheduler',
    'BoundaryConfig',
    'BoundaryActivation',
    'BoundaryBandSpec',
    'RankNumberBand',
    'build_lower_bout_days',
    'create_bout_day_map',
    'make_eligibility',
    'BashoScheduler',
    'BashoSchedule',
    'DaySchedule',
    'BashoDiagnostics',
]
