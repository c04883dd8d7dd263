"""
Cross-division pairing at division boundaries.

After within-division pairing, leftovers on both sides of a boundary may be
paired across the seam. Each boundary is evaluated in priority order; it
activates only when at least one activation reason fires, and candidates are
drawn from a rank-number band near the seam that widens outward when empty.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from src.league.constants import MAKUUCHI, JURYO, MAKUSHITA, SANDANME, JONIDAN, JONOKUCHI, MAEGASHIRA
from src.league.models import Competitor, Rank
from src.league.rank_codec import DivisionLayout, decode, layout_for
from src.league.scoring import clamp
from src.torikumi.constraints import FacedMap, STRICT, is_valid_pair, mark_faced
from src.torikumi.scheduler import (
    BoutPair,
    SchedulerConfig,
    is_lower_division_climax,
    pair_score,
    resolve_phase,
)

logger = logging.getLogger(__name__)

# Activation reasons
VACANCY = "VACANCY"
SHORTAGE = "SHORTAGE"
SCORE_ALIGNMENT = "SCORE_ALIGNMENT"
LATE_EVAL = "LATE_EVAL"
RUNAWAY_CHECK = "RUNAWAY_CHECK"

# Boundary ids, also used by the exchange rules
MAKUUCHI_JURYO = "MakuuchiJuryo"
JURYO_MAKUSHITA = "JuryoMakushita"
MAKUSHITA_SANDANME = "MakushitaSandanme"
SANDANME_JONIDAN = "SandanmeJonidan"
JONIDAN_JONOKUCHI = "JonidanJonokuchi"


@dataclass(frozen=True)
class RankNumberBand:
    """Inclusive rank-number range, optionally restricted to a named band."""
    min_number: int
    max_number: int
    rank_name: Optional[str] = None

    def contains(self, rank: Rank) -> bool:
        if self.rank_name is not None and rank.name != self.rank_name:
            return False
        return self.min_number <= rank.number <= self.max_number


@dataclass(frozen=True)
class BoundaryBandSpec:
    """Where cross-division bouts may be drawn for one boundary."""
    id: str
    upper_division: str
    lower_division: str
    upper_band: RankNumberBand
    lower_band: RankNumberBand


DEFAULT_BOUNDARY_BANDS = (
    BoundaryBandSpec(MAKUUCHI_JURYO, MAKUUCHI, JURYO,
                     RankNumberBand(14, 18, MAEGASHIRA), RankNumberBand(1, 3)),
    BoundaryBandSpec(JURYO_MAKUSHITA, JURYO, MAKUSHITA,
                     RankNumberBand(12, 14), RankNumberBand(1, 5)),
    BoundaryBandSpec(MAKUSHITA_SANDANME, MAKUSHITA, SANDANME,
                     RankNumberBand(55, 60), RankNumberBand(1, 5)),
    BoundaryBandSpec(SANDANME_JONIDAN, SANDANME, JONIDAN,
                     RankNumberBand(85, 90), RankNumberBand(1, 5)),
    BoundaryBandSpec(JONIDAN_JONOKUCHI, JONIDAN, JONOKUCHI,
                     RankNumberBand(96, 100), RankNumberBand(1, 5)),
)


@dataclass
class BoundaryConfig:
    """Tuning for boundary activation and cross-division candidate selection."""
    bands: Sequence[BoundaryBandSpec] = DEFAULT_BOUNDARY_BANDS
    priority: Sequence[str] = (
        MAKUUCHI_JURYO,
        JURYO_MAKUSHITA,
        MAKUSHITA_SANDANME,
        SANDANME_JONIDAN,
        JONIDAN_JONOKUCHI,
    )
    late_eval_start_day: int = 13
    max_band_widenings: int = 8
    fallback_candidate_count: int = 10
    vacancy_weight: float = 20.0
    promotion_pressure_weight: float = 14.0
    late_day_weight: float = 12.0
    late_day_weight_start: int = 11
    # Late-tournament bubble competitors held back for a bout across these seams
    late_reservation_boundaries: Sequence[str] = (JURYO_MAKUSHITA,)
    late_reservation_count: int = 2
    boundary_playoff_bonus: float = 60.0

    def __post_init__(self):
        known = {band_spec.id for band_spec in self.bands}
        for boundary_id in self.priority:
            if boundary_id not in known:
                raise ValueError(f"Priority lists unknown boundary: {boundary_id}")
        for boundary_id in self.late_reservation_boundaries:
            if boundary_id not in known:
                raise ValueError(f"Reservation lists unknown boundary: {boundary_id}")

    def band(self, boundary_id: str) -> BoundaryBandSpec:
        for band_spec in self.bands:
            if band_spec.id == boundary_id:
                return band_spec
        raise ValueError(f"Unknown boundary: {boundary_id}")


@dataclass
class BoundaryActivation:
    """Diagnostics for one boundary that activated on one day."""
    day: int
    boundary_id: str
    reasons: List[str] = field(default_factory=list)
    pair_count: int = 0
    need_weight: float = 0.0


def activation_reasons(
    upper: List[Competitor],
    lower: List[Competitor],
    day: int,
    vacancy: int = 0,
    late_eval_start_day: int = 13,
    late_phase: Optional[bool] = None
) -> List[str]:
    """
    Reasons to open a boundary today. Empty means it stays inactive.

    Args:
        upper: Leftovers of the upper division
        lower: Leftovers of the lower division
        day: Tournament day
        vacancy: Known open slots in the upper division
        late_eval_start_day: First day of late-tournament evaluation
        late_phase: Override for the late check (defaults to the day threshold)
    """
    reasons = []
    if vacancy > 0:
        reasons.append(VACANCY)
    if upper and lower:
        reasons.append(SHORTAGE)
    if any(abs(u.wins - l.wins) <= 1 for u in upper for l in lower):
        reasons.append(SCORE_ALIGNMENT)
    if late_phase is None:
        late_phase = day >= late_eval_start_day
    if late_phase:
        reasons.append(LATE_EVAL)
    if upper and lower:
        upper_bottom = min(c.wins for c in upper)
        lower_top = max(c.wins for c in lower)
        if lower_top - upper_bottom >= 2:
            reasons.append(RUNAWAY_CHECK)
    return reasons


def majority(target_bouts: int) -> int:
    return target_bouts // 2 + 1


def is_demotion_bubble(competitor: Competitor, rank: Rank, band: RankNumberBand) -> bool:
    """Inside the upper seam band, without a winning record yet and not ahead."""
    return (band.contains(rank)
            and competitor.wins < majority(competitor.target_bouts)
            and competitor.total_losses >= competitor.wins)


def is_promotion_bubble(competitor: Competitor, rank: Rank, band: RankNumberBand) -> bool:
    """Inside the lower seam band, level or ahead, with a losing record still avoidable."""
    return (band.contains(rank)
            and competitor.wins >= competitor.total_losses
            and competitor.total_losses < majority(competitor.target_bouts))


def merge_unique(prioritized: List[Competitor], rest: List[Competitor]) -> List[Competitor]:
    seen = set()
    merged = []
    for competitor in prioritized + rest:
        if competitor.id not in seen:
            seen.add(competitor.id)
            merged.append(competitor)
    return merged


def seam_distance(upper: Competitor, lower: Competitor, upper_capacity: int) -> int:
    """Rank distance across a boundary: ordinals from the upper's slot down to the lower's."""
    return max(0, upper_capacity - upper.rank_score) + lower.rank_score


BoundaryReservation = Tuple[List[Competitor], List[Competitor]]


class BoundaryPairingScheduler:
    """
    Pairs leftovers across adjacent divisions.

    Usage:
        boundary = BoundaryPairingScheduler()
        pairs, activations = boundary.pair_boundaries(leftovers, faced, day)
    """

    def __init__(
        self,
        config: Optional[BoundaryConfig] = None,
        scheduler_config: Optional[SchedulerConfig] = None
    ):
        self.config = config or BoundaryConfig()
        self.scheduler_config = scheduler_config or SchedulerConfig()

    def is_late(self, day: int, upper: List[Competitor], lower: List[Competitor]) -> bool:
        """Late evaluation: from the configured day, or once either side reaches its climax."""
        if day >= self.config.late_eval_start_day:
            return True
        return any(is_lower_division_climax(c, self.scheduler_config) for c in upper + lower)

    def reserve_late_candidates(
        self,
        pools: Dict[str, List[Competitor]],
        day: int,
        layouts: Optional[Dict[str, DivisionLayout]] = None
    ) -> Dict[str, BoundaryReservation]:
        """
        Bubble competitors to hold out of within-division pairing today.

        For each reservation boundary in its late phase, takes up to
        `late_reservation_count` demotion-bubble competitors of the upper
        division (worst rank first) and as many promotion-bubble competitors
        of the lower division (best rank first).

        Args:
            pools: Eligible competitors per division
            day: Tournament day
            layouts: Division layouts for decoding rank numbers

        Returns:
            (upper, lower) reservations per boundary id; boundaries with nothing to reserve are absent
        """
        layouts = layouts or {}
        reservations: Dict[str, BoundaryReservation] = {}
        if self.config.late_reservation_count <= 0:
            return reservations

        for boundary_id in self.config.late_reservation_boundaries:
            band_spec = self.config.band(boundary_id)
            upper = pools.get(band_spec.upper_division, [])
            lower = pools.get(band_spec.lower_division, [])
            if not upper or not lower or not self.is_late(day, upper, lower):
                continue

            upper_layout = self._layout(band_spec.upper_division, upper, layouts)
            lower_layout = self._layout(band_spec.lower_division, lower, layouts)
            upper_ranked = [(c, decode(c.rank_score, upper_layout)) for c in upper]
            lower_ranked = [(c, decode(c.rank_score, lower_layout)) for c in lower]
            upper_bubble = sorted(
                (pair for pair in upper_ranked if is_demotion_bubble(pair[0], pair[1], band_spec.upper_band)),
                key=lambda pair: (-pair[1].number, pair[0].wins, -pair[0].total_losses, -pair[0].rank_score, pair[0].id)
            )
            lower_bubble = sorted(
                (pair for pair in lower_ranked if is_promotion_bubble(pair[0], pair[1], band_spec.lower_band)),
                key=lambda pair: (pair[1].number, -pair[0].wins, pair[0].total_losses, pair[0].rank_score, pair[0].id)
            )

            count = min(self.config.late_reservation_count, len(upper_bubble), len(lower_bubble))
            if count <= 0:
                continue
            reservations[boundary_id] = (
                [c for c, _ in upper_bubble[:count]],
                [c for c, _ in lower_bubble[:count]],
            )
            logger.debug("Day %d: reserved %d bubble pairs for %s", day, count, boundary_id)

        return reservations

    def pair_boundaries(
        self,
        leftovers: Dict[str, List[Competitor]],
        faced: FacedMap,
        day: int,
        layouts: Optional[Dict[str, DivisionLayout]] = None,
        vacancy_by_division: Optional[Dict[str, int]] = None,
        reservations: Optional[Dict[str, BoundaryReservation]] = None
    ) -> Tuple[List[BoutPair], List[BoundaryActivation]]:
        """
        Run every boundary in priority order over the day's leftovers.

        Paired competitors are removed from `leftovers` and marked into `faced`.

        Args:
            leftovers: Unpaired competitors per division (mutated)
            faced: Opponents met so far this tournament (mutated)
            day: Tournament day
            layouts: Division layouts for decoding rank numbers
            vacancy_by_division: Known open slots per division
            reservations: Bubble competitors from reserve_late_candidates; they
                lead the candidate lists and must also be in `leftovers`

        Returns:
            Tuple of (boundary pairs, activations)
        """
        phase = resolve_phase(day, self.scheduler_config)
        layouts = layouts or {}
        vacancy_by_division = vacancy_by_division or {}
        reservations = reservations or {}
        pairs: List[BoutPair] = []
        activations: List[BoundaryActivation] = []

        for boundary_id in self.config.priority:
            band_spec = self.config.band(boundary_id)
            upper = leftovers.get(band_spec.upper_division, [])
            lower = leftovers.get(band_spec.lower_division, [])
            if not upper or not lower:
                continue

            vacancy = vacancy_by_division.get(band_spec.upper_division, 0)
            late = self.is_late(day, upper, lower)
            reasons = activation_reasons(upper, lower, day, vacancy, self.config.late_eval_start_day, late)
            if not reasons:
                continue

            upper_layout = self._layout(band_spec.upper_division, upper, layouts)
            lower_layout = self._layout(band_spec.lower_division, lower, layouts)
            upper_candidates = self.band_candidates(upper, band_spec.upper_band, upper_layout, worst_first=True)
            lower_candidates = self.band_candidates(lower, band_spec.lower_band, lower_layout, worst_first=False)

            playoff_ids = set()
            if boundary_id in reservations:
                available = {c.id for c in upper + lower}
                reserved_upper, reserved_lower = reservations[boundary_id]
                reserved_upper = [c for c in reserved_upper if c.id in available]
                reserved_lower = [c for c in reserved_lower if c.id in available]
                upper_candidates = sorted(merge_unique(reserved_upper, upper_candidates),
                                          key=lambda c: (-c.rank_score, c.id))
                lower_candidates = merge_unique(reserved_lower, lower_candidates)
                playoff_ids = {c.id for c in reserved_upper + reserved_lower}

            need = self.need_weight(upper_candidates, lower_candidates, day, vacancy)
            boundary_pairs = self._pair_across(
                upper_candidates, lower_candidates, faced, phase,
                upper_layout.total_capacity, need, playoff_ids
            )
            for pair in boundary_pairs:
                pair.boundary_id = boundary_id
                pair.activation_reasons = list(reasons)
                mark_faced(faced, pair.east, pair.west)

            paired = {i for pair in boundary_pairs for i in pair.ids}
            leftovers[band_spec.upper_division] = [c for c in upper if c.id not in paired]
            leftovers[band_spec.lower_division] = [c for c in lower if c.id not in paired]

            pairs.extend(boundary_pairs)
            activations.append(BoundaryActivation(
                day=day,
                boundary_id=boundary_id,
                reasons=reasons,
                pair_count=len(boundary_pairs),
                need_weight=need
            ))
            logger.debug("Day %d: boundary %s active (%s), %d pairs",
                         day, boundary_id, ",".join(reasons), len(boundary_pairs))

        return pairs, activations

    def band_candidates(
        self,
        participants: List[Competitor],
        band: RankNumberBand,
        layout: DivisionLayout,
        worst_first: bool
    ) -> List[Competitor]:
        """
        Participants inside the band, widening it outward when empty.

        Falls back to the competitors closest to the seam when no widening
        finds anyone. Upper-side results are ordered worst-first.
        """
        ranked = [(c, decode(c.rank_score, layout)) for c in participants]
        if not ranked:
            return []
        max_number = max(rank.number for _, rank in ranked)

        found: List[Competitor] = []
        low, high = band.min_number, band.max_number
        for _ in range(self.config.max_band_widenings + 1):
            current = RankNumberBand(low, high, band.rank_name)
            found = [c for c, rank in ranked if current.contains(rank)]
            if found:
                break
            low = clamp(low - 1, 1, max_number)
            high = clamp(high + 1, 1, max(max_number, band.max_number))

        if not found:
            found = sorted(participants, key=lambda c: (-c.rank_score, c.id) if worst_first
                           else (c.rank_score, c.id))
            found = found[:self.config.fallback_candidate_count]

        if worst_first:
            return sorted(found, key=lambda c: (-c.rank_score, c.id))
        return sorted(found, key=lambda c: (c.rank_score, c.id))

    def need_weight(
        self,
        upper: List[Competitor],
        lower: List[Competitor],
        day: int,
        vacancy: int
    ) -> float:
        """Vacancy bonus + promotion-pressure bonus + late-day bonus."""
        pressure = 0
        if upper and lower:
            pressure = max(0, max(c.wins for c in lower) - min(c.wins for c in upper) - 1)
        late = self.config.late_day_weight if day >= self.config.late_day_weight_start else 0.0
        return (vacancy * self.config.vacancy_weight
                + pressure * self.config.promotion_pressure_weight
                + late)

    def _pair_across(
        self,
        upper: List[Competitor],
        lower: List[Competitor],
        faced: FacedMap,
        phase: str,
        upper_capacity: int,
        need: float,
        playoff_ids: Optional[set] = None
    ) -> List[BoutPair]:
        """Greedy worst-upper-first pairing; a reserved upper and reserved lower meeting is a playoff."""
        playoff_ids = playoff_ids or set()
        used = set()
        pairs = []
        for upper_competitor in upper:
            best = None
            best_key = None
            for candidate in lower:
                if candidate.id in used:
                    continue
                if not is_valid_pair(faced, upper_competitor, candidate, STRICT):
                    continue
                distance = seam_distance(upper_competitor, candidate, upper_capacity)
                playoff = upper_competitor.id in playoff_ids and candidate.id in playoff_ids
                bonus = self.config.boundary_playoff_bonus if playoff else 0.0
                score = pair_score(upper_competitor, candidate, phase, self.scheduler_config,
                                   rank_distance=distance, playoff_bonus=bonus) - need
                key = (score, candidate.rank_score, candidate.id)
                if best_key is None or key < best_key:
                    best, best_key = candidate, key
            if best is not None:
                used.add(best.id)
                pairs.append(BoutPair(upper_competitor, best, stage=STRICT.name))
        return pairs

    def _layout(
        self,
        division: str,
        participants: List[Competitor],
        layouts: Dict[str, DivisionLayout]
    ) -> DivisionLayout:
        if division in layouts:
            return layouts[division]
        return layout_for(division, max(c.rank_score for c in participants))
