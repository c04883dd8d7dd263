"""
Storage backend for league simulation runs.

Uses SQLite for run metadata, per-cycle population counts, exchange outcomes
and boundary activations. The engine itself persists nothing; this is the
caller's record of what it returned.
"""

import json
import sqlite3
from pathlib import Path
from typing import List, Optional, Dict, Any
from datetime import datetime
from dataclasses import dataclass, field


@dataclass
class StoredExchange:
    """One boundary exchange as persisted."""
    cycle: int
    boundary_id: str
    slots: int
    promoted_ids: List[str]
    demoted_ids: List[str]
    reason: str
    player_promoted: bool = False
    player_demoted: bool = False


@dataclass
class RunRecord:
    """Complete record of a simulation run."""
    run_id: str
    created_at: str
    completed_at: Optional[str]
    status: str
    seed: Optional[int]
    cycles: int
    config: Dict[str, Any]
    population: Dict[int, Dict[str, Dict[str, int]]] = field(default_factory=dict)
    exchanges: List[StoredExchange] = field(default_factory=list)

    def exchanges_for(self, boundary_id: str) -> List[StoredExchange]:
        return [e for e in self.exchanges if e.boundary_id == boundary_id]

    def total_slots(self) -> Dict[str, int]:
        """Slots summed over all cycles, per boundary."""
        totals: Dict[str, int] = {}
        for exchange in self.exchanges:
            totals[exchange.boundary_id] = totals.get(exchange.boundary_id, 0) + exchange.slots
        return totals


class LeagueStorage:
    """
    Handles persistent storage of simulation runs.

    Uses SQLite tables in the league.db database.
    """

    def __init__(self, data_dir: str = "data"):
        """
        Initialize storage backend.

        Args:
            data_dir: Base directory for data storage
        """
        self.data_dir = Path(data_dir)
        self.db_path = self.data_dir / "league.db"

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize SQLite database schema for runs."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS runs (
                    run_id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL,
                    completed_at TEXT,
                    status TEXT DEFAULT 'in_progress',
                    seed INTEGER,
                    cycles INTEGER DEFAULT 0,
                    config TEXT
                )
            """)

            # Per-division counts after each cycle
            conn.execute("""
                CREATE TABLE IF NOT EXISTS cycle_population (
                    run_id TEXT NOT NULL,
                    cycle INTEGER NOT NULL,
                    division TEXT NOT NULL,
                    total INTEGER NOT NULL,
                    active INTEGER NOT NULL,
                    PRIMARY KEY (run_id, cycle, division),
                    FOREIGN KEY (run_id) REFERENCES runs(run_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS cycle_exchanges (
                    run_id TEXT NOT NULL,
                    cycle INTEGER NOT NULL,
                    boundary_id TEXT NOT NULL,
                    slots INTEGER NOT NULL,
                    promoted_ids TEXT NOT NULL,
                    demoted_ids TEXT NOT NULL,
                    reason TEXT NOT NULL,
                    player_promoted INTEGER DEFAULT 0,
                    player_demoted INTEGER DEFAULT 0,
                    PRIMARY KEY (run_id, cycle, boundary_id),
                    FOREIGN KEY (run_id) REFERENCES runs(run_id)
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS boundary_activations (
                    run_id TEXT NOT NULL,
                    cycle INTEGER NOT NULL,
                    day INTEGER NOT NULL,
                    boundary_id TEXT NOT NULL,
                    reasons TEXT NOT NULL,
                    pair_count INTEGER NOT NULL,
                    FOREIGN KEY (run_id) REFERENCES runs(run_id)
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_runs_status ON runs(status)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_exchanges_run ON cycle_exchanges(run_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_activations_run ON boundary_activations(run_id)")

            conn.commit()

    def create_run(
        self,
        run_id: str,
        seed: Optional[int] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Create a new run record.

        Args:
            run_id: Unique run identifier
            seed: Random seed of the run
            config: Optional configuration dict

        Returns:
            run_id
        """
        created_at = datetime.utcnow().isoformat()

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                INSERT INTO runs (run_id, created_at, status, seed, config)
                VALUES (?, ?, 'in_progress', ?, ?)
            """, (run_id, created_at, seed, json.dumps(config or {})))
            conn.commit()

        return run_id

    def save_cycle(self, run_id: str, result) -> None:
        """
        Save one cycle's snapshot, exchanges and activations.

        Args:
            run_id: Run identifier
            result: CycleResult from the cycle runner
        """
        with sqlite3.connect(self.db_path) as conn:
            for division, count in result.population_snapshot.counts.items():
                conn.execute("""
                    INSERT OR REPLACE INTO cycle_population
                    (run_id, cycle, division, total, active)
                    VALUES (?, ?, ?, ?, ?)
                """, (run_id, result.cycle, division, count.total, count.active))

            for boundary_id, outcome in result.exchanges.items():
                conn.execute("""
                    INSERT OR REPLACE INTO cycle_exchanges
                    (run_id, cycle, boundary_id, slots, promoted_ids, demoted_ids,
                     reason, player_promoted, player_demoted)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    run_id,
                    result.cycle,
                    boundary_id,
                    outcome.slots,
                    json.dumps(outcome.promoted_ids),
                    json.dumps(outcome.demoted_ids),
                    outcome.reason,
                    int(outcome.player_promoted),
                    int(outcome.player_demoted)
                ))

            for activation in result.boundary_activations:
                conn.execute("""
                    INSERT INTO boundary_activations
                    (run_id, cycle, day, boundary_id, reasons, pair_count)
                    VALUES (?, ?, ?, ?, ?, ?)
                """, (
                    run_id,
                    result.cycle,
                    activation.day,
                    activation.boundary_id,
                    json.dumps(activation.reasons),
                    activation.pair_count
                ))

            conn.execute("UPDATE runs SET cycles = ? WHERE run_id = ?", (result.cycle, run_id))
            conn.commit()

    def complete_run(self, run_id: str):
        """Mark a run as completed."""
        completed_at = datetime.utcnow().isoformat()

        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                UPDATE runs
                SET status = 'completed', completed_at = ?
                WHERE run_id = ?
            """, (completed_at, run_id))
            conn.commit()

    def load_run(self, run_id: str) -> Optional[RunRecord]:
        """Load a run by ID."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row

            cursor = conn.execute("SELECT * FROM runs WHERE run_id = ?", (run_id,))
            row = cursor.fetchone()
            if not row:
                return None

            population: Dict[int, Dict[str, Dict[str, int]]] = {}
            cursor = conn.execute(
                "SELECT * FROM cycle_population WHERE run_id = ? ORDER BY cycle",
                (run_id,)
            )
            for r in cursor.fetchall():
                population.setdefault(r['cycle'], {})[r['division']] = {
                    'total': r['total'],
                    'active': r['active'],
                }

            cursor = conn.execute(
                "SELECT * FROM cycle_exchanges WHERE run_id = ? ORDER BY cycle, rowid",
                (run_id,)
            )
            exchanges = [
                StoredExchange(
                    cycle=r['cycle'],
                    boundary_id=r['boundary_id'],
                    slots=r['slots'],
                    promoted_ids=json.loads(r['promoted_ids']),
                    demoted_ids=json.loads(r['demoted_ids']),
                    reason=r['reason'],
                    player_promoted=bool(r['player_promoted']),
                    player_demoted=bool(r['player_demoted'])
                )
                for r in cursor.fetchall()
            ]

            return RunRecord(
                run_id=row['run_id'],
                created_at=row['created_at'],
                completed_at=row['completed_at'],
                status=row['status'],
                seed=row['seed'],
                cycles=row['cycles'] or 0,
                config=json.loads(row['config'] or '{}'),
                population=population,
                exchanges=exchanges
            )

    def load_activations(self, run_id: str, cycle: Optional[int] = None) -> List[Dict[str, Any]]:
        """Boundary activations of a run, optionally for one cycle."""
        query = "SELECT * FROM boundary_activations WHERE run_id = ?"
        params: list = [run_id]
        if cycle is not None:
            query += " AND cycle = ?"
            params.append(cycle)
        query += " ORDER BY cycle, day, rowid"

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute(query, params)
            return [
                {
                    'cycle': r['cycle'],
                    'day': r['day'],
                    'boundary_id': r['boundary_id'],
                    'reasons': json.loads(r['reasons']),
                    'pair_count': r['pair_count'],
                }
                for r in cursor.fetchall()
            ]

    def list_runs(self, limit: int = 20) -> List[Dict[str, Any]]:
        """List recent runs."""
        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.execute("""
                SELECT run_id, created_at, completed_at, status, seed, cycles
                FROM runs
                ORDER BY created_at DESC
                LIMIT ?
            """, (limit,))

            return [dict(row) for row in cursor.fetchall()]
