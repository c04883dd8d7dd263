"""
Boundary Exchange Resolver.

For each division boundary: classify promotion and demotion candidates,
equalize the two pools into a balanced number of swap slots, and apply the
forced full-absence override for the tracked competitor. Boundaries are
evaluated top-down and a competitor moved at one boundary is not considered
at the next.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set

from src.league.constants import PLAYER_ID
from src.league.models import Competitor
from src.league.registry import LeagueRegistry
from src.league.scoring import max_number_for, rank_number
from src.exchange.rules import BoundaryRule, CandidateRule, DEFAULT_BOUNDARY_RULES

logger = logging.getLogger(__name__)

NORMAL = "NORMAL"
MANDATORY_ABSENCE_DEMOTION = "MANDATORY_ABSENCE_DEMOTION"


@dataclass
class ExchangeConfig:
    """Slot arithmetic margins and the tracked competitor."""
    forced_slot_margin: float = 5.0
    extend_slot_margin: float = 2.5
    mandatory_bonus: float = 8.0
    player_id: str = PLAYER_ID


@dataclass
class ResultSnapshot:
    """A competitor's tournament record as the resolver sees it."""
    id: str
    rank_score: int
    wins: int
    losses: int
    is_player: bool = False

    @classmethod
    def from_competitor(cls, competitor: Competitor, player_id: Optional[str] = None) -> "ResultSnapshot":
        """Absences count as losses."""
        return cls(
            id=competitor.id,
            rank_score=competitor.rank_score,
            wins=competitor.wins,
            losses=competitor.total_losses,
            is_player=competitor.is_player or competitor.id == player_id,
        )


@dataclass
class BoundaryCandidate:
    """A scored promotion or demotion candidate."""
    id: str
    score: float
    mandatory: bool
    borderline: bool
    rank_score: int


@dataclass
class ExchangeOutcome:
    """Decision for one boundary. len(promoted_ids) == len(demoted_ids) == slots."""
    boundary_id: str
    slots: int = 0
    promoted_ids: List[str] = field(default_factory=list)
    demoted_ids: List[str] = field(default_factory=list)
    player_promoted: bool = False
    player_demoted: bool = False
    reason: str = NORMAL
    used_fallback: bool = False
    demotion_candidates: List[BoundaryCandidate] = field(default_factory=list)
    promotion_candidates: List[BoundaryCandidate] = field(default_factory=list)

    @property
    def mandatory_demotions(self) -> int:
        return sum(1 for c in self.demotion_candidates if c.mandatory)

    @property
    def mandatory_promotions(self) -> int:
        return sum(1 for c in self.promotion_candidates if c.mandatory)

    def to_dict(self) -> dict:
        return {
            'boundary_id': self.boundary_id,
            'slots': self.slots,
            'promoted_ids': list(self.promoted_ids),
            'demoted_ids': list(self.demoted_ids),
            'player_promoted': self.player_promoted,
            'player_demoted': self.player_demoted,
            'reason': self.reason,
        }


def _demotion_order(candidate: BoundaryCandidate):
    return (not candidate.mandatory, -candidate.score, -candidate.rank_score, candidate.id)


def _promotion_order(candidate: BoundaryCandidate):
    return (not candidate.mandatory, -candidate.score, candidate.rank_score, candidate.id)


def build_candidates(
    results: Iterable[ResultSnapshot],
    rule: CandidateRule,
    max_number: int,
    mandatory_bonus: float = 8.0,
    demotion: bool = True
) -> List[BoundaryCandidate]:
    """
    Classify results with a candidate rule.

    Only mandatory or borderline competitors become candidates. Mandatory
    ones get a score bonus and always sort first; ties fall to the rank
    closer to the seam, then id.

    Args:
        results: Records of one side of the boundary
        rule: Promotion or demotion rule
        max_number: Rank-number scale of that side
        mandatory_bonus: Score added to mandatory candidates
        demotion: Whether this is the demotion (upper) side
    """
    candidates = []
    for result in results:
        number = rank_number(result.rank_score, max_number)
        mandatory = bool(rule.mandatory(number, result.wins, result.losses, max_number))
        borderline = bool(rule.bubble(number, result.wins, result.losses, max_number))
        if not mandatory and not borderline:
            continue
        score = rule.score(number, result.wins, result.losses, max_number)
        if mandatory:
            score += mandatory_bonus
        candidates.append(BoundaryCandidate(
            id=result.id,
            score=score,
            mandatory=mandatory,
            borderline=borderline,
            rank_score=result.rank_score,
        ))
    return sorted(candidates, key=_demotion_order if demotion else _promotion_order)


def build_fallback_candidates(
    results: Iterable[ResultSnapshot],
    rule: CandidateRule,
    max_number: int,
    exclude: Optional[Set[str]] = None
) -> List[BoundaryCandidate]:
    """Scoring-only candidates (never mandatory), best score first, ties by descending id."""
    exclude = exclude or set()
    candidates = []
    for result in results:
        if result.id in exclude:
            continue
        number = rank_number(result.rank_score, max_number)
        if not rule.fallback_eligible(number, result.wins, result.losses, max_number):
            continue
        candidates.append(BoundaryCandidate(
            id=result.id,
            score=rule.fallback_score(number, result.wins, result.losses, max_number),
            mandatory=False,
            borderline=False,
            rank_score=result.rank_score,
        ))
    candidates.sort(key=lambda c: c.id, reverse=True)
    return sorted(candidates, key=lambda c: -c.score)


def resolve_slots(
    demotions: Sequence[BoundaryCandidate],
    promotions: Sequence[BoundaryCandidate],
    config: Optional[ExchangeConfig] = None
) -> int:
    """
    Number of balanced swaps at a boundary.

    Starts from the larger mandatory count (bounded by the smaller pool),
    forces one slot when both pools are non-empty, then extends while the
    next promotion candidate outscores the next demotion candidate.
    """
    config = config or ExchangeConfig()
    max_slots = min(len(demotions), len(promotions))
    if max_slots == 0:
        return 0

    mandatory_demotions = sum(1 for c in demotions if c.mandatory)
    mandatory_promotions = sum(1 for c in promotions if c.mandatory)
    slots = min(max(mandatory_demotions, mandatory_promotions), max_slots)

    if slots == 0 and promotions[0].score >= demotions[0].score + config.forced_slot_margin:
        slots = 1
    if slots == 0:
        slots = 1

    while slots < max_slots and promotions[slots].score >= demotions[slots].score + config.extend_slot_margin:
        slots += 1
    return slots


def _pad(pool: List[BoundaryCandidate], extra: List[BoundaryCandidate], target: int) -> List[BoundaryCandidate]:
    padded = list(pool)
    for candidate in extra:
        if len(padded) >= target:
            break
        padded.append(candidate)
    return padded


class BoundaryExchangeResolver:
    """
    Decides promotions and demotions at every boundary.

    Usage:
        resolver = BoundaryExchangeResolver()
        outcomes = resolver.resolve_all(registry)
    """

    def __init__(
        self,
        rules: Sequence[BoundaryRule] = DEFAULT_BOUNDARY_RULES,
        config: Optional[ExchangeConfig] = None
    ):
        self.rules = list(rules)
        self.config = config or ExchangeConfig()

    def resolve(
        self,
        rule: BoundaryRule,
        upper_results: List[ResultSnapshot],
        lower_results: List[ResultSnapshot]
    ) -> ExchangeOutcome:
        """
        Resolve one boundary.

        Args:
            rule: Boundary rule
            upper_results: Records of the upper division
            lower_results: Records of the lower division

        Returns:
            ExchangeOutcome with equal-length promoted and demoted lists
        """
        outcome = ExchangeOutcome(boundary_id=rule.id)
        if not upper_results or not lower_results:
            return outcome

        upper_max = rule.upper_max_number or max_number_for(len(upper_results))
        lower_max = rule.lower_max_number or max_number_for(len(lower_results))
        bonus = self.config.mandatory_bonus

        demotions = build_candidates(upper_results, rule.demotion, upper_max, bonus, demotion=True)
        promotions = build_candidates(lower_results, rule.promotion, lower_max, bonus, demotion=False)

        if not demotions and not promotions:
            demotions = build_fallback_candidates(upper_results, rule.demotion, upper_max)
            promotions = build_fallback_candidates(lower_results, rule.promotion, lower_max)
            outcome.used_fallback = True

        mandatory_promotions = sum(1 for c in promotions if c.mandatory)
        if promotions and (not demotions or mandatory_promotions > len(demotions)):
            target = min(len(upper_results), max(1, mandatory_promotions))
            extra = build_fallback_candidates(
                upper_results, rule.demotion, upper_max, exclude={c.id for c in demotions}
            )
            demotions = _pad(demotions, extra, target)

        if demotions and (not promotions or len(demotions) > len(promotions)):
            target = min(len(lower_results), max(1, len(demotions)))
            extra = build_fallback_candidates(
                lower_results, rule.promotion, lower_max, exclude={c.id for c in promotions}
            )
            promotions = _pad(promotions, extra, target)

        outcome.demotion_candidates = demotions
        outcome.promotion_candidates = promotions

        slots = resolve_slots(demotions, promotions, self.config)
        outcome.demoted_ids = [c.id for c in demotions[:slots]]
        outcome.promoted_ids = [c.id for c in promotions[:slots]]

        self._apply_absence_override(rule, outcome, upper_results, lower_results, promotions)

        outcome.slots = len(outcome.demoted_ids)
        player_ids = {r.id for r in upper_results + lower_results if r.is_player}
        outcome.player_demoted = any(i in player_ids for i in outcome.demoted_ids)
        outcome.player_promoted = any(i in player_ids for i in outcome.promoted_ids)
        return outcome

    def _apply_absence_override(
        self,
        rule: BoundaryRule,
        outcome: ExchangeOutcome,
        upper_results: List[ResultSnapshot],
        lower_results: List[ResultSnapshot],
        promotions: List[BoundaryCandidate]
    ):
        """
        Force a full-absence tracked competitor on the upper side into the demotions.

        The promotion side is padded with the next unselected promotion
        candidate, else the best-ranked unselected lower competitor (ties by
        id). When no pad exists the player takes the last demotion slot.
        """
        player = next(
            (r for r in upper_results
             if r.is_player and r.wins == 0 and r.losses >= rule.full_absence_losses),
            None
        )
        if player is None:
            return

        outcome.reason = MANDATORY_ABSENCE_DEMOTION
        if player.id in outcome.demoted_ids:
            return

        selected = set(outcome.promoted_ids)
        pad_id = next((c.id for c in promotions if c.id not in selected), None)
        if pad_id is None:
            remaining = sorted(
                (r for r in lower_results if r.id not in selected and not r.is_player),
                key=lambda r: (r.rank_score, r.id)
            )
            pad_id = remaining[0].id if remaining else None

        if pad_id is not None:
            outcome.demoted_ids.append(player.id)
            outcome.promoted_ids.append(pad_id)
        elif outcome.demoted_ids:
            outcome.demoted_ids[-1] = player.id
        logger.info("Boundary %s: forced demotion of %s after full absence", rule.id, player.id)

    def resolve_all(self, registry: LeagueRegistry) -> Dict[str, ExchangeOutcome]:
        """
        Resolve every boundary against the registry's active rosters.

        Boundaries run top-down; anyone already moved at a higher boundary is
        left out of the lower ones.

        Returns:
            Outcome per boundary id, in rule order
        """
        outcomes: Dict[str, ExchangeOutcome] = {}
        moved: Set[str] = set()
        player_id = self.config.player_id

        for rule in self.rules:
            upper = [
                ResultSnapshot.from_competitor(c, player_id)
                for c in registry.roster(rule.upper_division) if c.id not in moved
            ]
            lower = [
                ResultSnapshot.from_competitor(c, player_id)
                for c in registry.roster(rule.lower_division) if c.id not in moved
            ]
            outcome = self.resolve(rule, upper, lower)
            moved.update(outcome.promoted_ids)
            moved.update(outcome.demoted_ids)
            outcomes[rule.id] = outcome
            if outcome.slots:
                logger.debug("Boundary %s: %d slots (%s)", rule.id, outcome.slots, outcome.reason)

        return outcomes
