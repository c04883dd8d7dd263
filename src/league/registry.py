"""
League registry: the single store of competitors for one simulation instance.

The registry is passed by reference from phase to phase. Each phase mutates
it and hands it on; nothing else holds competitor state.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from src.league.constants import DIVISION_ORDER
from src.league.errors import MissingCompetitorError
from src.league.models import Competitor


def rank_order_key(competitor: Competitor):
    """Sort key for roster order: rank score, then id."""
    return (competitor.rank_score, competitor.id)


@dataclass
class DivisionCount:
    """Headcount of one division."""
    total: int = 0
    active: int = 0


@dataclass
class PopulationSnapshot:
    """Per-division counts of total and active competitors."""
    counts: Dict[str, DivisionCount] = field(default_factory=dict)

    def active(self, division: str) -> int:
        count = self.counts.get(division)
        return count.active if count else 0

    def total(self, division: str) -> int:
        count = self.counts.get(division)
        return count.total if count else 0

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            division: {'total': count.total, 'active': count.active}
            for division, count in self.counts.items()
        }


class LeagueRegistry:
    """
    Store of every competitor keyed by id.

    Iteration follows insertion order, so identical construction yields
    identical traversal.
    """

    def __init__(self, competitors: Optional[Iterable[Competitor]] = None):
        self._competitors: Dict[str, Competitor] = {}
        for competitor in competitors or []:
            self.add(competitor)

    def add(self, competitor: Competitor) -> Competitor:
        """
        Register a competitor.

        Raises:
            ValueError: If the id is already registered
        """
        if competitor.id in self._competitors:
            raise ValueError(f"Duplicate competitor id: {competitor.id}")
        self._competitors[competitor.id] = competitor
        return competitor

    def get(self, competitor_id: str) -> Optional[Competitor]:
        return self._competitors.get(competitor_id)

    def require(self, competitor_id: str, where: str = "registry") -> Competitor:
        """
        Look up a competitor that must exist.

        Raises:
            MissingCompetitorError: If the id is not registered
        """
        competitor = self._competitors.get(competitor_id)
        if competitor is None:
            raise MissingCompetitorError(competitor_id, where)
        return competitor

    def __contains__(self, competitor_id: str) -> bool:
        return competitor_id in self._competitors

    def __len__(self) -> int:
        return len(self._competitors)

    def __iter__(self) -> Iterator[Competitor]:
        return iter(list(self._competitors.values()))

    def active(self) -> List[Competitor]:
        return [c for c in self._competitors.values() if c.active]

    def roster(self, division: str, active_only: bool = True) -> List[Competitor]:
        """Members of a division in rank order."""
        members = [
            c for c in self._competitors.values()
            if c.division == division and (c.active or not active_only)
        ]
        return sorted(members, key=rank_order_key)

    def rosters(self, active_only: bool = True) -> Dict[str, List[Competitor]]:
        """Rosters for every division, highest first."""
        rosters = {division: [] for division in DIVISION_ORDER}
        for competitor in self._competitors.values():
            if active_only and not competitor.active:
                continue
            rosters.setdefault(competitor.division, []).append(competitor)
        for members in rosters.values():
            members.sort(key=rank_order_key)
        return rosters

    def count(self, division: str, active_only: bool = True) -> int:
        return sum(
            1 for c in self._competitors.values()
            if c.division == division and (c.active or not active_only)
        )

    def active_counts(self) -> Dict[str, int]:
        return {division: self.count(division) for division in DIVISION_ORDER}

    def densify(self, division: str) -> List[Competitor]:
        """Reassign rank scores 1..N to the active members of a division."""
        members = self.roster(division)
        for position, competitor in enumerate(members, 1):
            competitor.rank_score = position
        return members

    def snapshot(self) -> PopulationSnapshot:
        """Current per-division total and active counts."""
        counts = {division: DivisionCount() for division in DIVISION_ORDER}
        for competitor in self._competitors.values():
            count = counts.setdefault(competitor.division, DivisionCount())
            count.total += 1
            if competitor.active:
                count.active += 1
        return PopulationSnapshot(counts=counts)
