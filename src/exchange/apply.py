"""
Apply exchange outcomes to the registry.
"""

import logging
from typing import Dict, Iterable

from src.league.registry import LeagueRegistry
from src.exchange.resolver import ExchangeOutcome
from src.exchange.rules import BoundaryRule, DEFAULT_BOUNDARY_RULES, rules_by_id

logger = logging.getLogger(__name__)

# Offset that places incoming competitors below everyone already ranked
TAIL_OFFSET = 1_000_000


def apply_exchange(registry: LeagueRegistry, rule: BoundaryRule, outcome: ExchangeOutcome) -> int:
    """
    Move one boundary's promoted and demoted competitors.

    Promoted competitors join the upper division at its tail, demoted
    competitors join the lower division at its head; both rosters are then
    densified. Ids not found on their expected side are skipped, and the
    move stays balanced.

    Raises:
        MissingCompetitorError: If an id in the outcome is not registered

    Returns:
        Number of swaps applied
    """
    promoted = [registry.require(i, f"exchange {rule.id}") for i in outcome.promoted_ids]
    demoted = [registry.require(i, f"exchange {rule.id}") for i in outcome.demoted_ids]
    promoted = [c for c in promoted if c.division == rule.lower_division and c.active]
    demoted = [c for c in demoted if c.division == rule.upper_division and c.active]

    count = min(len(promoted), len(demoted))
    if count < len(outcome.promoted_ids) or count < len(outcome.demoted_ids):
        logger.warning("Boundary %s: applying %d of %d slots", rule.id, count, outcome.slots)

    for index, competitor in enumerate(demoted[:count]):
        competitor.division = rule.lower_division
        competitor.rank_score = index - count
    for index, competitor in enumerate(promoted[:count]):
        competitor.division = rule.upper_division
        competitor.rank_score = TAIL_OFFSET + index

    registry.densify(rule.upper_division)
    registry.densify(rule.lower_division)
    return count


def apply_exchanges(
    registry: LeagueRegistry,
    outcomes: Dict[str, ExchangeOutcome],
    rules: Iterable[BoundaryRule] = DEFAULT_BOUNDARY_RULES
) -> Dict[str, int]:
    """Apply every outcome, top boundary first. Returns swaps applied per boundary."""
    applied = {}
    for boundary_id, rule in rules_by_id(rules).items():
        outcome = outcomes.get(boundary_id)
        if outcome is None or outcome.slots == 0:
            applied[boundary_id] = 0
            continue
        applied[boundary_id] = apply_exchange(registry, rule, outcome)
    return applied
