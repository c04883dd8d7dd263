"""
Exchange flags handed to the rank-assignment committee.

The committee turns these into published ranks; this module only reports
whether the tracked competitor may move, where a boundary move would put it,
and a half-step nudge relative to its immediate neighbours.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.league.models import Rank
from src.league.rank_codec import decode, layout_for
from src.league.registry import LeagueRegistry
from src.exchange.resolver import ExchangeOutcome, NORMAL
from src.exchange.rules import BoundaryRule, DEFAULT_BOUNDARY_RULES


@dataclass
class CommitteeFlags:
    """Per-competitor exchange flags."""
    competitor_id: str
    can_promote: bool = False
    can_demote: bool = False
    assigned_next_rank: Optional[Rank] = None
    half_step_nudge: int = 0
    boundary_id: Optional[str] = None
    reason: str = NORMAL

    def to_dict(self) -> dict:
        return {
            'competitor_id': self.competitor_id,
            'can_promote': self.can_promote,
            'can_demote': self.can_demote,
            'assigned_next_rank': self.assigned_next_rank.label if self.assigned_next_rank else None,
            'half_step_nudge': self.half_step_nudge,
            'boundary_id': self.boundary_id,
            'reason': self.reason,
        }


def compute_half_step_nudge(player_diff: int, upper_diff: Optional[int], lower_diff: Optional[int]) -> int:
    """
    Half-step nudge from the win-loss differences of the neighbours.

    -1 moves toward the better rank (the neighbour above), +1 toward the
    worse one. A missing neighbour counts as having the same record.

    Args:
        player_diff: wins - losses of the competitor
        upper_diff: wins - losses of the competitor ranked directly above
        lower_diff: wins - losses of the competitor ranked directly below
    """
    upper = player_diff if upper_diff is None else upper_diff
    lower = player_diff if lower_diff is None else lower_diff

    if player_diff > 0 and player_diff >= upper + 2:
        return -1
    if player_diff < 0 and lower >= player_diff + 2:
        return 1
    if player_diff == 0:
        if upper <= -2:
            return -1
        if lower >= 2:
            return 1
        return 0
    if player_diff > 0 and upper < 0:
        return -1
    if player_diff < 0 and lower > 0:
        return 1
    return 0


def resolve_committee_flags(
    registry: LeagueRegistry,
    outcomes: Dict[str, ExchangeOutcome],
    competitor_id: str,
    rules: Iterable[BoundaryRule] = DEFAULT_BOUNDARY_RULES
) -> CommitteeFlags:
    """
    Flags for one competitor. Call before the outcomes are applied.

    Raises:
        MissingCompetitorError: If the competitor is not in the registry
    """
    competitor = registry.require(competitor_id, "committee snapshot")
    flags = CommitteeFlags(competitor_id=competitor_id)

    roster = registry.roster(competitor.division)
    diffs: Dict[int, int] = {c.rank_score: c.wins - c.total_losses for c in roster}
    player_diff = competitor.wins - competitor.total_losses
    flags.half_step_nudge = compute_half_step_nudge(
        player_diff,
        diffs.get(competitor.rank_score - 1),
        diffs.get(competitor.rank_score + 1),
    )

    for rule in rules:
        outcome = outcomes.get(rule.id)
        if outcome is None:
            continue
        if competitor.division == rule.lower_division:
            candidate_ids: List[str] = [c.id for c in outcome.promotion_candidates]
            if competitor_id in candidate_ids or competitor_id in outcome.promoted_ids:
                flags.can_promote = True
            if competitor_id in outcome.promoted_ids:
                upper_size = registry.count(rule.upper_division)
                slot = upper_size - outcome.slots + outcome.promoted_ids.index(competitor_id) + 1
                flags.assigned_next_rank = decode(slot, layout_for(rule.upper_division, max(1, upper_size)))
                flags.boundary_id = rule.id
                flags.reason = outcome.reason
        if competitor.division == rule.upper_division:
            candidate_ids = [c.id for c in outcome.demotion_candidates]
            if competitor_id in candidate_ids or competitor_id in outcome.demoted_ids:
                flags.can_demote = True
            if competitor_id in outcome.demoted_ids:
                lower_size = registry.count(rule.lower_division)
                slot = outcome.demoted_ids.index(competitor_id) + 1
                flags.assigned_next_rank = decode(slot, layout_for(rule.lower_division, max(1, lower_size + outcome.slots)))
                flags.boundary_id = rule.id
                flags.reason = outcome.reason

    return flags
