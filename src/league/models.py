"""
Core data model: competitors and structured ranks.
"""

from dataclasses import dataclass, field
from typing import List, Set, Tuple


@dataclass
class Competitor:
    """
    One competitor in the league.

    `rank_score` is the dense ordinal position (1..N) within `division`.
    `power` and `ability` are opaque to the scheduling and exchange code;
    only the bout model reads them. `absences` count as losses when a
    boundary rule evaluates the record.
    """
    id: str
    shikona: str
    stable_id: str
    division: str
    rank_score: int
    power: float = 80.0
    ability: float = 80.0
    wins: int = 0
    losses: int = 0
    absences: int = 0
    active: bool = True
    is_player: bool = False
    forbidden_opponent_ids: Set[str] = field(default_factory=set)
    target_bouts: int = 0
    bouts_done: int = 0
    age: int = 18
    entry_age: int = 18
    career_basho: int = 0
    # (wins, losses) of previous tournaments, most recent last
    recent_results: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def record_diff(self) -> int:
        return self.wins - self.losses

    @property
    def total_losses(self) -> int:
        """Losses including absences."""
        return self.losses + self.absences

    @property
    def remaining_bouts(self) -> int:
        return max(0, self.target_bouts - self.bouts_done)

    def reset_record(self, target_bouts: int):
        """Clear the tournament record ahead of a new tournament."""
        self.wins = 0
        self.losses = 0
        self.absences = 0
        self.bouts_done = 0
        self.target_bouts = target_bouts

    def forbids(self, other: "Competitor") -> bool:
        """True if either side lists the other as a forbidden opponent."""
        return other.id in self.forbidden_opponent_ids or self.id in other.forbidden_opponent_ids


@dataclass(frozen=True)
class Rank:
    """Structured rank: division, band name, number and side."""
    division: str
    name: str
    number: int
    side: str

    @property
    def label(self) -> str:
        return f"{self.name} {self.number} {self.side}"
