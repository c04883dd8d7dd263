"""
Headcount policies per division.

FIXED divisions hold exactly their target. VARIABLE divisions may float
between a minimum and a soft maximum.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from src.league.constants import (
    MAKUUCHI,
    JURYO,
    MAKUSHITA,
    SANDANME,
    JONIDAN,
    JONOKUCHI,
    MAEZUMO,
    DIVISION_ORDER,
)
from src.league.scoring import clamp

FIXED = "FIXED"
VARIABLE = "VARIABLE"


@dataclass(frozen=True)
class DivisionPolicy:
    """Headcount policy of one division."""
    division: str
    mode: str
    fixed_slots: int = 0
    min_slots: int = 0
    soft_max_slots: Optional[int] = None

    def __post_init__(self):
        if self.division not in DIVISION_ORDER:
            raise ValueError(f"Unknown division: {self.division}")
        if self.mode not in (FIXED, VARIABLE):
            raise ValueError(f"Unknown policy mode: {self.mode}")
        if self.mode == FIXED and self.fixed_slots < 1:
            raise ValueError(f"Fixed division {self.division} needs at least one slot")
        if self.min_slots < 0:
            raise ValueError(f"Negative minimum for {self.division}")


@dataclass(frozen=True)
class HeadcountTarget:
    """Resolved {min, max, target, fixed} for a division and its current count."""
    min: int
    max: float
    target: int
    fixed: bool


DEFAULT_DIVISION_POLICIES = (
    DivisionPolicy(MAKUUCHI, FIXED, fixed_slots=42),
    DivisionPolicy(JURYO, FIXED, fixed_slots=28),
    DivisionPolicy(MAKUSHITA, FIXED, fixed_slots=120),
    DivisionPolicy(SANDANME, FIXED, fixed_slots=180),
    DivisionPolicy(JONIDAN, VARIABLE, min_slots=120, soft_max_slots=320),
    DivisionPolicy(JONOKUCHI, VARIABLE, min_slots=20, soft_max_slots=64),
    DivisionPolicy(MAEZUMO, VARIABLE, min_slots=0, soft_max_slots=None),
)


def resolve_policy_map(policies: Optional[Iterable[DivisionPolicy]] = None) -> Dict[str, DivisionPolicy]:
    """Policy per division; divisions without an explicit policy are unbounded."""
    policy_map = {p.division: p for p in DEFAULT_DIVISION_POLICIES}
    for policy in policies or []:
        policy_map[policy.division] = policy
    return policy_map


def resolve_target_headcount(policy: DivisionPolicy, current: int) -> HeadcountTarget:
    """
    Headcount bounds for a division given its current count.

    Args:
        policy: Division policy
        current: Current active headcount

    Returns:
        HeadcountTarget; VARIABLE targets are the current count clamped into range
    """
    if policy.mode == FIXED:
        return HeadcountTarget(
            min=policy.fixed_slots,
            max=policy.fixed_slots,
            target=policy.fixed_slots,
            fixed=True,
        )
    maximum = float("inf") if policy.soft_max_slots is None else max(policy.min_slots, policy.soft_max_slots)
    return HeadcountTarget(
        min=policy.min_slots,
        max=maximum,
        target=int(clamp(current, policy.min_slots, maximum)),
        fixed=False,
    )


def initial_headcount(policy: DivisionPolicy) -> int:
    """Seeding size: the fixed target, or the midpoint of a bounded variable range."""
    if policy.mode == FIXED:
        return policy.fixed_slots
    if policy.soft_max_slots is None:
        return policy.min_slots
    return (policy.min_slots + policy.soft_max_slots) // 2
