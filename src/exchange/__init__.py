"""
Boundary exchange: who crosses each division seam after a tournament.

Provides:
- BoundaryRule / CandidateRule: per-boundary promotion and demotion rules
- BoundaryExchangeResolver: candidate classification and slot equalization
- apply_exchanges: moves the decided competitors in the registry
- resolve_committee_flags: flags for the rank-assignment committee
"""

from src.exchange.rules import (
    BoundaryRule,
    CandidateRule,
    DEFAULT_BOUNDARY_RULES,
    rules_by_id,
)
from src.exchange.resolver import (
    BoundaryExchangeResolver,
    ExchangeConfig,
    ExchangeOutcome,
    ResultSnapshot,
    BoundaryCandidate,
    build_candidates,
    build_fallback_candidates,
    resolve_slots,
    NORMAL,
    MANDATORY_ABSENCE_DEMOTION,
)
from src.exchange.apply import apply_exchange, apply_exchanges
from src.exchange.flags import CommitteeFlags, compute_half_step_nudge, resolve_committee_flags

__all__ = [
    'BoundaryRule',
    'CandidateRule',
    'DEFAULT_BOUNDARY_RULES',
    'rules_by_id',
    'BoundaryExchangeResolver',
    'ExchangeConfig',
    'ExchangeOutcome',
    'ResultSnapshot',
    'BoundaryCandidate',
    'build_candidates',
    'build_fallback_candidates',
    'resolve_slots',
    'NORMAL',
    'MANDATORY_ABSENCE_DEMOTION',
    'apply_exchange',
    'apply_exchanges',
    'CommitteeFlags',
    'compute_half_step_nudge',
    'resolve_committee_flags',
]
