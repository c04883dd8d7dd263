#!/usr/bin/env python3
"""
League simulation: tournament cycles with boundary exchanges and headcount reconciliation.

Usage:
    python scripts/simulate.py --cycles 6 --seed 42

Examples:
    # One career, tracking a player seeded at the bottom of Makushita
    python scripts/simulate.py --cycles 12 --seed 7 --player Makushita

    # Persist every cycle
    python scripts/simulate.py --cycles 6 --db data

    # Many independent careers in parallel
    python scripts/simulate.py --careers 32 --cycles 12 --workers 4
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.league.constants import DIVISION_ORDER, PLAYER_ID
from src.population.seeding import build_initial_league
from src.simulation.runner import CycleRunner, CycleConfig
from src.simulation.batch import BatchRunner, BatchConfig
from src.simulation.storage import LeagueStorage
from src.simulation.display import (
    format_activation_counts,
    format_batch_summary,
    format_population_table,
)


def parse_args():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Simulate league tournament cycles.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Divisions: ''' + ", ".join(DIVISION_ORDER) + '''

Examples:
  python scripts/simulate.py --cycles 6 --seed 42
  python scripts/simulate.py --careers 16 --cycles 12
'''
    )

    parser.add_argument(
        '--cycles', '-c',
        type=int, default=6,
        help='Number of tournament cycles per career (default: 6)'
    )
    parser.add_argument(
        '--seed', '-s',
        type=int, default=0,
        help='Random seed (default: 0)'
    )
    parser.add_argument(
        '--player', '-p',
        type=str, default=None, choices=DIVISION_ORDER,
        help='Seed a tracked player at the bottom of this division'
    )
    parser.add_argument(
        '--careers',
        type=int, default=0,
        help='Run this many independent careers in batch mode'
    )
    parser.add_argument(
        '--workers', '-w',
        type=int, default=None,
        help='Worker threads for batch mode (default: CPU count - 1)'
    )
    parser.add_argument(
        '--db',
        type=str, default=None,
        help='Directory for the results database (single career only)'
    )
    parser.add_argument(
        '--output', '-o',
        type=str, default=None,
        help='Run ID/name (auto-generated if not specified)'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Minimal output (only final results)'
    )
    parser.add_argument(
        '--log-level',
        type=str, default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING)'
    )

    return parser.parse_args()


def run_batch(args) -> int:
    """Run independent careers and print aggregate exchange statistics."""
    config = BatchConfig(
        careers=args.careers,
        cycles=args.cycles,
        base_seed=args.seed,
        workers=args.workers,
        player_division=args.player,
        show_progress=not args.quiet
    )
    result = BatchRunner(config).run()

    print(format_batch_summary(result.slot_statistics(), config.careers, config.cycles))
    print(f"\nRecruited: {result.total_recruited}")
    return 0


def run_single(args) -> int:
    """Run one career."""
    rng = np.random.default_rng(args.seed)
    registry = build_initial_league(rng, player_division=args.player)

    config = CycleConfig(
        cycles=args.cycles,
        seed=args.seed,
        player_id=PLAYER_ID if args.player else None
    )
    storage = LeagueStorage(args.db) if args.db else None
    runner = CycleRunner(
        registry,
        config=config,
        rng=rng,
        storage=storage,
        verbose=not args.quiet
    )

    results = runner.run(run_id=args.output)
    final = results[-1]

    print("\n=== FINAL POPULATION ===")
    print(format_population_table(final.population_snapshot))
    print("\nBoundary activations (last cycle):")
    print(format_activation_counts(final.boundary_activations))

    if storage is not None:
        runs = storage.list_runs(limit=1)
        if runs:
            print(f"\nRun ID: {runs[0]['run_id']}")
    return 0


def main():
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.cycles < 1:
        print("Error: Need at least 1 cycle")
        return 1

    if args.careers:
        if args.db:
            print("Error: --db is only supported for a single career")
            return 1
        return run_batch(args)
    return run_single(args)


if __name__ == "__main__":
    sys.exit(main())
