"""
Display formatting for league simulation results.

Provides ASCII-formatted population tables, exchange summaries and boundary
activation counts for terminal output.
"""

from typing import Dict, List, Optional

from src.league.constants import DIVISION_ORDER
from src.league.rank_codec import format_rank
from src.league.registry import PopulationSnapshot
from src.exchange.resolver import ExchangeOutcome, NORMAL
from src.exchange.flags import CommitteeFlags
from src.torikumi.boundary import BoundaryActivation


def format_population_table(
    snapshot: PopulationSnapshot,
    previous: Optional[PopulationSnapshot] = None
) -> str:
    """
    Format per-division headcounts as an ASCII table.

    Args:
        snapshot: Counts after the cycle
        previous: Optional counts before the cycle, shown as a change column

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append(f"{'Division':<12}{'Active':>8}{'Total':>8}{'Change':>8}")
    lines.append("-" * 36)

    for division in DIVISION_ORDER:
        active = snapshot.active(division)
        total = snapshot.total(division)
        change = ""
        if previous is not None:
            delta = active - previous.active(division)
            if delta != 0:
                change = f"{delta:+d}"
        lines.append(f"{division:<12}{active:>8}{total:>8}{change:>8}")

    return "\n".join(lines)


def format_exchange_summary(outcomes: Dict[str, ExchangeOutcome]) -> str:
    """
    Format exchange outcomes, one line per boundary.

    Args:
        outcomes: Outcome per boundary id

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append(f"{'Boundary':<20}{'Slots':>6}  {'Promoted':<28}{'Demoted':<28}")
    lines.append("-" * 82)

    for boundary_id, outcome in outcomes.items():
        promoted = ", ".join(outcome.promoted_ids[:3])
        if len(outcome.promoted_ids) > 3:
            promoted += ", .."
        demoted = ", ".join(outcome.demoted_ids[:3])
        if len(outcome.demoted_ids) > 3:
            demoted += ", .."
        line = f"{boundary_id:<20}{outcome.slots:>6}  {promoted:<28}{demoted:<28}"
        if outcome.reason != NORMAL:
            line += f" [{outcome.reason}]"
        lines.append(line)

    return "\n".join(lines)


def format_activation_counts(activations: List[BoundaryActivation]) -> str:
    """Days active and cross-division bouts per boundary."""
    days: Dict[str, int] = {}
    bouts: Dict[str, int] = {}
    for activation in activations:
        days[activation.boundary_id] = days.get(activation.boundary_id, 0) + 1
        bouts[activation.boundary_id] = bouts.get(activation.boundary_id, 0) + activation.pair_count

    if not days:
        return "No boundary activations"

    lines = []
    lines.append(f"{'Boundary':<20}{'Days':>6}{'Bouts':>7}")
    lines.append("-" * 33)
    for boundary_id in days:
        lines.append(f"{boundary_id:<20}{days[boundary_id]:>6}{bouts[boundary_id]:>7}")
    return "\n".join(lines)


def format_player_flags(flags: CommitteeFlags) -> str:
    """Single-line summary of the tracked competitor's exchange flags."""
    parts = [flags.competitor_id]
    if flags.can_promote:
        parts.append("can promote")
    if flags.can_demote:
        parts.append("can demote")
    if flags.assigned_next_rank is not None:
        parts.append(f"-> {format_rank(flags.assigned_next_rank)}")
    if flags.half_step_nudge:
        parts.append(f"nudge {flags.half_step_nudge:+d}")
    return ", ".join(parts)


def format_cycle_header(cycle: int, total_cycles: int, active: int) -> str:
    """Format the header printed before each cycle."""
    return f"\n=== Cycle {cycle}/{total_cycles} ({active} active competitors) ==="


def format_batch_summary(slot_stats: Dict[str, Dict[str, float]], careers: int, cycles: int) -> str:
    """
    Format aggregate exchange statistics from a batch run.

    Args:
        slot_stats: Per boundary: mean, std, max slots per cycle
        careers: Number of independent careers
        cycles: Cycles per career

    Returns:
        Formatted string for terminal display
    """
    lines = []
    lines.append("=== BATCH SUMMARY ===")
    lines.append(f"Careers: {careers}, cycles per career: {cycles}")
    lines.append("")
    lines.append(f"{'Boundary':<20}{'Mean':>8}{'Std':>8}{'Max':>6}")
    lines.append("-" * 42)
    for boundary_id, stats in slot_stats.items():
        lines.append(
            f"{boundary_id:<20}{stats['mean']:>8.2f}{stats['std']:>8.2f}{int(stats['max']):>6}"
        )
    return "\n".join(lines)
