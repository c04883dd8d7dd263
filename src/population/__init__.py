"""
League population flow between tournaments.

Provides:
- DivisionPolicy / resolve_target_headcount: fixed and variable headcount policies
- LeaguePopulationReconciler: restores every division to its policy
- RetirementModel / RecruitIntake: default retirement and intake collaborators
- promote_entry_pool: moves the entry pool into Jonokuchi by qualifier rise band
- reorder_by_performance: re-ranks divisions by their tournament record
- build_initial_league: seeds a full league
"""

from src.population.policy import (
    DivisionPolicy,
    HeadcountTarget,
    FIXED,
    VARIABLE,
    DEFAULT_DIVISION_POLICIES,
    resolve_policy_map,
    resolve_target_headcount,
)
from src.population.reconciler import (
    LeaguePopulationReconciler,
    ReconcileReport,
    ReconcileMove,
    PROMOTE,
    DEMOTE,
    INTAKE,
)
from src.population.retirement import RetirementModel, advance_careers
from src.population.intake import RecruitIntake
from src.population.entry import EntryPromotion, promote_entry_pool
from src.population.ordering import reorder_by_performance
from src.population.seeding import build_initial_league

__all__ = [
    'DivisionPolicy',
    'HeadcountTarget',
    'FIXED',
    'VARIABLE',
    'DEFAULT_DIVISION_POLICIES',
    'resolve_policy_map',
    'resolve_target_headcount',
    'LeaguePopulationReconciler',
    'ReconcileReport',
    'ReconcileMove',
    'PROMOTE',
    'DEMOTE',
    'INTAKE',
    'RetirementModel',
    'advance_careers',
    'RecruitIntake',
    'EntryPromotion',
    'promote_entry_pool',
    'reorder_by_performance',
    'build_initial_league',
]
