"""
Performance re-ordering between tournaments.
"""

from typing import Iterable, Optional

from src.league.constants import RANKED_DIVISIONS
from src.league.registry import LeagueRegistry

PERFORMANCE_SHIFT = 0.6


def reorder_by_performance(
    registry: LeagueRegistry,
    divisions: Iterable[str] = RANKED_DIVISIONS,
    shift: float = PERFORMANCE_SHIFT,
    pinned_ids: Optional[Iterable[str]] = None
):
    """
    Re-rank each division by `rank_score - shift * (wins - losses)` and densify.

    Absences count as losses. Ties keep the previous order, then id.
    Pinned competitors (this cycle's exchanges) keep their position; the
    rest are re-ranked into the remaining positions.
    """
    pinned = set(pinned_ids or ())
    for division in divisions:
        roster = registry.roster(division)
        fixed = {
            position: c for position, c in enumerate(roster, 1) if c.id in pinned
        }
        movable = [c for c in roster if c.id not in pinned]
        movable.sort(key=lambda c: (
            c.rank_score - shift * (c.wins - c.total_losses),
            c.rank_score,
            c.id,
        ))
        queue = iter(movable)
        for position in range(1, len(roster) + 1):
            competitor = fixed.get(position) or next(queue)
            competitor.rank_score = position
