"""
Batch harness: many independent careers in parallel.

Each career gets its own seed, registry and random source; nothing is shared
between workers. Aggregates exchange slot statistics with numpy.
"""

import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from src.league.constants import PLAYER_ID
from src.population.policy import DivisionPolicy
from src.population.seeding import build_initial_league
from src.simulation.runner import CycleConfig, CycleRunner

logger = logging.getLogger(__name__)


@dataclass
class BatchConfig:
    """Configuration for a batch of independent careers."""
    careers: int = 8
    cycles: int = 6
    base_seed: int = 0
    # Number of worker threads (None = auto-detect)
    workers: Optional[int] = None
    player_division: Optional[str] = None
    policies: Optional[Sequence[DivisionPolicy]] = None
    show_progress: bool = True

    def __post_init__(self):
        if self.careers < 1:
            raise ValueError("Need at least one career")
        if self.cycles < 1:
            raise ValueError("Need at least one cycle")

    def get_workers(self) -> int:
        """Get number of workers, auto-detecting if not specified."""
        if self.workers is not None:
            return max(1, self.workers)
        return max(1, (os.cpu_count() or 2) - 1)


@dataclass
class CareerSummary:
    """Per-career totals."""
    seed: int
    slots_by_boundary: Dict[str, List[int]] = field(default_factory=dict)
    recruited: int = 0
    retired: int = 0
    unfilled_cycles: int = 0
    player_moves: int = 0


@dataclass
class BatchResult:
    """Aggregated results of a batch."""
    careers: List[CareerSummary]

    def slot_statistics(self) -> Dict[str, Dict[str, float]]:
        """Mean, standard deviation and max of slots per cycle, per boundary."""
        per_boundary: Dict[str, List[int]] = {}
        for career in self.careers:
            for boundary_id, slots in career.slots_by_boundary.items():
                per_boundary.setdefault(boundary_id, []).extend(slots)

        stats = {}
        for boundary_id, values in per_boundary.items():
            array = np.asarray(values, dtype=float)
            stats[boundary_id] = {
                'mean': float(array.mean()) if array.size else 0.0,
                'std': float(array.std()) if array.size else 0.0,
                'max': float(array.max()) if array.size else 0.0,
            }
        return stats

    @property
    def total_recruited(self) -> int:
        return sum(c.recruited for c in self.careers)


def run_career(
    seed: int,
    cycles: int,
    player_division: Optional[str] = None,
    policies: Optional[Sequence[DivisionPolicy]] = None
) -> CareerSummary:
    """Run one isolated career and summarize it."""
    rng = np.random.default_rng(seed)
    registry = build_initial_league(rng, policies=policies, player_division=player_division)
    config = CycleConfig(
        cycles=cycles,
        seed=seed,
        policies=policies,
        player_id=PLAYER_ID if player_division else None
    )
    runner = CycleRunner(registry, config, rng=rng, verbose=False)

    summary = CareerSummary(seed=seed)
    for result in runner.run():
        for boundary_id, outcome in result.exchanges.items():
            summary.slots_by_boundary.setdefault(boundary_id, []).append(outcome.slots)
        summary.recruited += result.reconcile_report.recruited
        summary.retired += len(result.retired_ids)
        if result.reconcile_report.unfilled:
            summary.unfilled_cycles += 1
        if result.player_flags and result.player_flags.assigned_next_rank is not None:
            summary.player_moves += 1
    return summary


class BatchRunner:
    """
    Runs independent careers across worker threads.

    Usage:
        batch = BatchRunner(BatchConfig(careers=16, cycles=12))
        result = batch.run()
    """

    def __init__(self, config: Optional[BatchConfig] = None):
        self.config = config or BatchConfig()

    def run(self) -> BatchResult:
        seeds = [self.config.base_seed + i for i in range(self.config.careers)]
        num_workers = min(self.config.get_workers(), len(seeds))
        logger.info("Running %d careers on %d workers", len(seeds), num_workers)

        # Flush stdout before progress bar
        sys.stdout.flush()

        summaries: Dict[int, CareerSummary] = {}
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            futures = {
                executor.submit(
                    run_career, seed, self.config.cycles,
                    self.config.player_division, self.config.policies
                ): seed
                for seed in seeds
            }
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                desc="Careers",
                unit="career",
                file=sys.stderr,
                disable=not self.config.show_progress,
            ):
                summary = future.result()
                summaries[summary.seed] = summary

        return BatchResult(careers=[summaries[seed] for seed in seeds])
