"""
Promotion and demotion candidate rules for every division boundary.

A rule maps (rank number, wins, losses, max number) to mandatory-ness,
borderline-ness and a desirability score. Lower-division thresholds scale
with the division's size through the depth helpers below; the sekitori
seams use fixed rank numbers and a 15-bout scale.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from src.league.constants import MAKUUCHI, JURYO, MAKUSHITA, SANDANME, JONIDAN, JONOKUCHI
from src.torikumi.boundary import (
    MAKUUCHI_JURYO,
    JURYO_MAKUSHITA,
    MAKUSHITA_SANDANME,
    SANDANME_JONIDAN,
    JONIDAN_JONOKUCHI,
)

# (number, wins, losses, max_number) -> value
Predicate = Callable[[int, int, int, int], bool]
Scorer = Callable[[int, int, int, int], float]


def _always(number, wins, losses, max_number):
    return True


@dataclass(frozen=True)
class CandidateRule:
    """One side of a boundary: who must or may move, and how badly."""
    mandatory: Predicate
    bubble: Predicate
    score: Scorer
    fallback_score: Scorer
    fallback_eligible: Predicate = _always


@dataclass(frozen=True)
class BoundaryRule:
    """
    Exchange rule for one boundary.

    `upper_max_number`/`lower_max_number` fix the rank-number scale; when
    None the scale follows the size of the pool being evaluated.
    `full_absence_losses` is the loss count that, with zero wins, marks a
    full-absence tournament on the upper side.
    """
    id: str
    upper_division: str
    lower_division: str
    demotion: CandidateRule
    promotion: CandidateRule
    full_absence_losses: int
    upper_max_number: Optional[int] = None
    lower_max_number: Optional[int] = None


def top_rounded(max_number: int, ratio: float, minimum: int) -> int:
    """Depth of a top-of-division lane: a share of the division, at least `minimum`."""
    return max(minimum, round(max_number * ratio))


def bottom_start(max_number: int, ratio: float, min_band: int) -> int:
    """First rank number of a bottom-of-division lane."""
    return max(1, max_number - max(min_band, math.ceil(max_number * ratio)) + 1)


def lane_depth(number: int, max_number: int, ratio: float, min_start: int) -> int:
    """How far a rank number sits below the start of a lane."""
    return max(0, number - max(min_start, round(max_number * ratio)))


# Makuuchi / Juryo: Maegashira tail against the top of Juryo, 15 bouts
MAKUUCHI_JURYO_RULE = BoundaryRule(
    id=MAKUUCHI_JURYO,
    upper_division=MAKUUCHI,
    lower_division=JURYO,
    upper_max_number=21,
    lower_max_number=14,
    full_absence_losses=15,
    demotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            (n >= 19 and w <= 6) or (n >= 16 and w <= 5) or (n >= 13 and w <= 3)
        ),
        bubble=lambda n, w, l, m: (
            (n >= 19 and w <= 6) or (n >= 16 and w <= 5) or (n >= 13 and w <= 3)
            or (n >= 18 and w == 7) or (n >= 15 and w == 6) or (n >= 12 and w == 5)
        ),
        score=lambda n, w, l, m: (
            (n - 11) * 2.05 + max(0, 8 - w) * 3.15 + max(0, l - w) * 1.1
        ),
        fallback_score=lambda n, w, l, m: (
            max(0, n - 17) * 1.8 + max(0, 8 - w) * 1.2 + max(0, l - w) * 0.4
        ),
    ),
    promotion=CandidateRule(
        mandatory=lambda n, w, l, m: w > l and (
            (n <= 2 and w >= 10) or (n <= 5 and w >= 12) or w >= 13
        ),
        bubble=lambda n, w, l, m: w > l and (
            (n <= 2 and w >= 10) or (n <= 5 and w >= 12) or w >= 13
            or (n <= 3 and w >= 9) or (n <= 7 and w >= 10) or w >= 12
        ),
        score=lambda n, w, l, m: (
            max(0, w - 7) * 2.9 + max(0, 15 - n) * 1.1 + max(0, w - l) * 1.0
        ),
        fallback_score=lambda n, w, l, m: (
            max(0, w - 7) * 2.4 + max(0, 15 - n) * 1.0 + max(0, w - l) * 0.7
        ),
        fallback_eligible=lambda n, w, l, m: w > l,
    ),
)

# Juryo / Makushita: the sekitori line
JURYO_MAKUSHITA_RULE = BoundaryRule(
    id=JURYO_MAKUSHITA,
    upper_division=JURYO,
    lower_division=MAKUSHITA,
    upper_max_number=14,
    lower_max_number=60,
    full_absence_losses=15,
    demotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            (n >= 14 and w <= 7) or (n >= 13 and w <= 6)
            or (n >= 12 and w <= 5) or (n >= 10 and w <= 3)
        ),
        bubble=lambda n, w, l, m: (
            (n >= 14 and w <= 7) or (n >= 13 and w <= 6)
            or (n >= 12 and w <= 5) or (n >= 10 and w <= 3)
            or (n >= 13 and w == 7) or (n >= 11 and w == 6) or (n >= 9 and w == 5)
        ),
        score=lambda n, w, l, m: (
            (n - 8) * 2.05 + max(0, 8 - w) * 3.15 + max(0, l - w) * 1.1
        ),
        fallback_score=lambda n, w, l, m: (
            max(0, n - 12) * 1.8 + max(0, 8 - w) * 1.2 + max(0, l - w) * 0.4
        ),
    ),
    promotion=CandidateRule(
        mandatory=lambda n, w, l, m: w > l and (
            (n <= 15 and w == 7) or (n == 1 and w >= 4)
        ),
        bubble=lambda n, w, l, m: w > l and (
            (n <= 15 and w == 7) or (n == 1 and w >= 4)
            or (n <= 3 and w >= 5) or (n <= 5 and w >= 6)
            or (n <= 10 and w == 7) or (n <= 15 and w >= 6)
        ),
        score=lambda n, w, l, m: (
            max(0, w - 3) * 2.9 + max(0, 16 - n) * 1.65 + max(0, w - l) * 1.0
        ),
        fallback_score=lambda n, w, l, m: (
            max(0, w - 3) * 2.4 + max(0, 20 - n) * 1.2 + max(0, w - l) * 0.7
        ),
        fallback_eligible=lambda n, w, l, m: w > l,
    ),
)


def _lower_promotion_score(weight_wins, lane_ratio, lane_min, weight_lane, weight_diff):
    def score(n, w, l, m):
        return (max(0, w - 3) * weight_wins
                + max(0, top_rounded(m, lane_ratio, lane_min) - n) * weight_lane
                + max(0, w - l) * weight_diff)
    return score


MAKUSHITA_SANDANME_RULE = BoundaryRule(
    id=MAKUSHITA_SANDANME,
    upper_division=MAKUSHITA,
    lower_division=SANDANME,
    full_absence_losses=7,
    demotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.08, 5) and w <= 2)
            or (n >= bottom_start(m, 0.18, 11) and w == 0)
        ),
        bubble=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.08, 5) and w <= 2)
            or (n >= bottom_start(m, 0.14, 9) and w <= 3)
            or (n >= bottom_start(m, 0.22, 13) and w <= 2)
        ),
        score=lambda n, w, l, m: (
            lane_depth(n, m, 0.73, 18) * 2.0 + max(0, 4 - w) * 3.0 + max(0, l - w) * 1.1
        ),
        fallback_score=lambda n, w, l, m: (
            lane_depth(n, m, 0.9, 30) * 1.6 + max(0, 4 - w) * 1.25 + max(0, l - w) * 0.45
        ),
    ),
    promotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            w >= 4 if n == 1 else
            (n <= top_rounded(m, 0.17, 10) and w == 7) or (n <= top_rounded(m, 0.08, 5) and w >= 6)
        ),
        bubble=lambda n, w, l, m: (
            (n == 1 and w >= 4)
            or (n <= top_rounded(m, 0.17, 10) and w == 7)
            or (n <= top_rounded(m, 0.08, 5) and w >= 6)
            or (n <= top_rounded(m, 0.25, 15) and w >= 6)
            or (n <= top_rounded(m, 0.42, 25) and w == 7)
        ),
        score=_lower_promotion_score(2.95, 0.27, 16, 1.75, 1.05),
        fallback_score=_lower_promotion_score(2.95, 0.27, 16, 1.75, 1.05),
    ),
)

SANDANME_JONIDAN_RULE = BoundaryRule(
    id=SANDANME_JONIDAN,
    upper_division=SANDANME,
    lower_division=JONIDAN,
    full_absence_losses=7,
    demotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.06, 5) and w <= 2)
            or (n >= bottom_start(m, 0.13, 11) and w == 0)
        ),
        bubble=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.06, 5) and w <= 2)
            or (n >= bottom_start(m, 0.1, 9) and w <= 3)
            or (n >= bottom_start(m, 0.18, 17) and w <= 2)
        ),
        score=lambda n, w, l, m: (
            lane_depth(n, m, 0.76, 24) * 1.65 + max(0, 4 - w) * 2.65 + max(0, l - w) * 1.0
        ),
        fallback_score=lambda n, w, l, m: (
            lane_depth(n, m, 0.91, 34) * 1.4 + max(0, 4 - w) * 1.15 + max(0, l - w) * 0.4
        ),
    ),
    promotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            w >= 4 if n == 1 else
            (n <= top_rounded(m, 0.17, 15) and w == 7) or (n <= top_rounded(m, 0.09, 8) and w >= 6)
        ),
        bubble=lambda n, w, l, m: (
            (n == 1 and w >= 4)
            or (n <= top_rounded(m, 0.17, 15) and w == 7)
            or (n <= top_rounded(m, 0.09, 8) and w >= 6)
            or (n <= top_rounded(m, 0.22, 20) and w >= 6)
            or (n <= top_rounded(m, 0.39, 35) and w == 7)
        ),
        score=_lower_promotion_score(2.75, 0.24, 22, 1.3, 1.0),
        fallback_score=_lower_promotion_score(2.75, 0.24, 22, 1.3, 1.0),
    ),
)

JONIDAN_JONOKUCHI_RULE = BoundaryRule(
    id=JONIDAN_JONOKUCHI,
    upper_division=JONIDAN,
    lower_division=JONOKUCHI,
    full_absence_losses=7,
    demotion=CandidateRule(
        mandatory=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.05, 5) and w <= 2)
            or (n >= bottom_start(m, 0.11, 11) and w == 0)
        ),
        bubble=lambda n, w, l, m: (
            (n >= bottom_start(m, 0.05, 5) and w <= 2)
            or (n >= bottom_start(m, 0.09, 9) and w <= 3)
            or (n >= bottom_start(m, 0.17, 17) and w <= 2)
        ),
        score=lambda n, w, l, m: (
            lane_depth(n, m, 0.8, 30) * 1.6 + max(0, 4 - w) * 2.5 + max(0, l - w) * 0.95
        ),
        fallback_score=lambda n, w, l, m: (
            lane_depth(n, m, 0.92, 40) * 1.35 + max(0, 4 - w) * 1.1 + max(0, l - w) * 0.35
        ),
    ),
    promotion=CandidateRule(
        mandatory=lambda n, w, l, m: w >= 4 if n == 1 else w == 7,
        bubble=lambda n, w, l, m: (
            (n == 1 and w >= 4)
            or w == 7
            or (n <= top_rounded(m, 0.33, 10) and w >= 6)
            or (n <= top_rounded(m, 0.6, 18) and w >= 5)
        ),
        score=_lower_promotion_score(2.65, 0.67, 20, 1.15, 0.95),
        fallback_score=_lower_promotion_score(2.65, 0.67, 20, 1.15, 0.95),
    ),
)

DEFAULT_BOUNDARY_RULES = (
    MAKUUCHI_JURYO_RULE,
    JURYO_MAKUSHITA_RULE,
    MAKUSHITA_SANDANME_RULE,
    SANDANME_JONIDAN_RULE,
    JONIDAN_JONOKUCHI_RULE,
)


def rules_by_id(rules=DEFAULT_BOUNDARY_RULES) -> Dict[str, BoundaryRule]:
    return {rule.id: rule for rule in rules}
