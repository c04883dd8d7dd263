"""
Bout calendar for lower-division competitors.

Lower-division competitors fight seven bouts over fifteen days. Each gets a
start day (1 or 2) followed by six intervals of two days, some of which are
stretched to three.
"""

from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from src.league.divisions import is_elite
from src.league.models import Competitor

BOUT_INTERVALS = 6
BASE_GAP = 2
STRETCHED_GAP = 3

EligibilityFn = Callable[[Competitor, int], bool]


def build_lower_bout_days(rng: np.random.Generator) -> List[int]:
    """
    Draw one lower-division calendar.

    68% start on day 1 with no stretched gaps; 20% have one stretched gap
    (start 1) or start on day 2; the remaining 12% have two stretched gaps
    (start 1) or start on day 2 with one.

    Returns:
        Sorted list of seven bout days within 1..15
    """
    roll = rng.random()
    if roll < 0.68:
        start, stretched = 1, 0
    elif roll < 0.88:
        start = 1 if rng.random() < 0.7 else 2
        stretched = 1 if start == 1 else 0
    else:
        start = 1 if rng.random() < 0.6 else 2
        stretched = 2 if start == 1 else 1

    gaps = [BASE_GAP] * BOUT_INTERVALS
    if stretched:
        for index in rng.choice(BOUT_INTERVALS, size=stretched, replace=False):
            gaps[int(index)] = STRETCHED_GAP

    days = [start]
    for gap in gaps:
        days.append(days[-1] + gap)
    return days


def create_bout_day_map(
    competitors: Iterable[Competitor],
    rng: np.random.Generator
) -> Dict[str, List[int]]:
    """Calendar per active lower-division competitor, in input order."""
    return {
        c.id: build_lower_bout_days(rng)
        for c in competitors
        if c.active and not is_elite(c.division)
    }


def make_eligibility(day_map: Optional[Dict[str, List[int]]] = None) -> EligibilityFn:
    """
    Build the per-day eligibility predicate.

    Sekitori fight every day. Lower-division competitors fight on their
    calendar days, or on odd days when they have no calendar.
    """
    day_map = day_map or {}

    def eligible(competitor: Competitor, day: int) -> bool:
        if not competitor.active or competitor.bouts_done >= competitor.target_bouts:
            return False
        if is_elite(competitor.division):
            return True
        days = day_map.get(competitor.id)
        if days is None:
            return day % 2 == 1
        return day in days

    return eligible
