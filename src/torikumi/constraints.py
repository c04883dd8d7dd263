"""
Pairing constraints and the ordered relaxation stages.

Each stage is a pure predicate over the same candidate pool. Stages are tried
in order: strict, then rematches allowed, then same-stable allowed as the last
resort. Mutual forbidden-opponent lists are never relaxed.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Set, Tuple

from src.league.models import Competitor

FacedMap = Dict[str, Set[str]]


@dataclass(frozen=True)
class PairConstraints:
    """One relaxation stage."""
    name: str
    allow_same_stable: bool = False
    allow_rematch: bool = False


STRICT = PairConstraints("strict")
RELAX_REMATCH = PairConstraints("relax_rematch", allow_rematch=True)
RELAX_STABLE = PairConstraints("relax_stable", allow_same_stable=True, allow_rematch=True)

DEFAULT_STAGES: Tuple[PairConstraints, ...] = (STRICT, RELAX_REMATCH, RELAX_STABLE)
STRICT_ONLY: Tuple[PairConstraints, ...] = (STRICT,)


def create_faced_map(competitors: Iterable[Competitor]) -> FacedMap:
    """Empty faced-set for every competitor of a tournament."""
    return {c.id: set() for c in competitors}


def already_faced(faced: FacedMap, a: Competitor, b: Competitor) -> bool:
    return b.id in faced.get(a.id, ()) or a.id in faced.get(b.id, ())


def mark_faced(faced: FacedMap, a: Competitor, b: Competitor):
    """Record a bout. The faced-set only ever grows."""
    faced.setdefault(a.id, set()).add(b.id)
    faced.setdefault(b.id, set()).add(a.id)


def is_valid_pair(
    faced: FacedMap,
    a: Competitor,
    b: Competitor,
    constraints: PairConstraints = STRICT
) -> bool:
    """
    Check whether two competitors may meet under a constraint stage.

    Args:
        faced: Opponents met so far this tournament
        a: First competitor
        b: Second competitor
        constraints: Relaxation stage

    Returns:
        True if the pair is legal
    """
    if a.id == b.id:
        return False
    if a.forbids(b):
        return False
    if not constraints.allow_same_stable and a.stable_id == b.stable_id:
        return False
    if not constraints.allow_rematch and already_faced(faced, a, b):
        return False
    return True
