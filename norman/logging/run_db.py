"""SQLite store for mapping run history."""

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


RUNS_SCHEMA = """
CREATE TABLE IF NOT EXISTS runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT UNIQUE NOT NULL,
    started_at TEXT NOT NULL,
    command TEXT NOT NULL,
    arguments TEXT,  -- JSON, never includes the connection string
    status TEXT NOT NULL DEFAULT 'started',
    duration_ms INTEGER,

    adapter_signature TEXT,
    database_name TEXT,
    schemas_count INTEGER,
    tables_count INTEGER,
    columns_count INTEGER,
    views_count INTEGER,
    routines_count INTEGER,
    warnings_count INTEGER,

    reports_written TEXT,  -- JSON list of report paths
    output_dir TEXT,

    error_type TEXT,
    error_message TEXT,
    error_traceback TEXT
);

CREATE INDEX IF NOT EXISTS idx_runs_started_at ON runs(started_at);
CREATE INDEX IF NOT EXISTS idx_runs_adapter ON runs(adapter_signature);
"""

# Per-run object counters, in column order
MAPPING_COUNTS = (
    "schemas_count",
    "tables_count",
    "columns_count",
    "views_count",
    "routines_count",
    "warnings_count",
)

# Matches SQLite's datetime('now') so stored and computed times compare as text
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _timestamp(ago: timedelta = timedelta(0)) -> str:
    return (datetime.now(timezone.utc) - ago).strftime(TIMESTAMP_FORMAT)


def get_default_run_db_path() -> str:
    """Return ~/.norman/runs.db, creating the directory if needed."""
    norman_dir = Path.home() / ".norman"
    norman_dir.mkdir(exist_ok=True)
    return str(norman_dir / "runs.db")


class RunDatabase:
    """History of `norman map` runs kept in a local SQLite file.

    The connection is opened and the schema created on first use.
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or get_default_run_db_path()
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            conn = sqlite3.connect(self.db_path, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.executescript(RUNS_SCHEMA)
            logger.debug("Opened run history at %s", self.db_path)
            self._connection = conn
        return self._connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def start_run(self, run_id: str, command: str, arguments: Optional[Dict[str, Any]] = None) -> None:
        """Record a run in the 'started' state."""
        self.connection.execute(
            "INSERT INTO runs (run_id, started_at, command, arguments) VALUES (?, ?, ?, ?)",
            (run_id, _timestamp(), command, json.dumps(arguments) if arguments else None),
        )

    def record_mapping(
        self,
        run_id: str,
        adapter_signature: str,
        database_name: str,
        counts: Dict[str, int],
    ) -> None:
        """Store the adapter used and the object counts of a mapped database.

        Args:
            run_id: Run identifier
            adapter_signature: Signature of the adapter that mapped the database
            database_name: Name of the mapped database
            counts: Values keyed by the names in MAPPING_COUNTS; missing keys store 0

        Raises:
            ValueError: If counts holds a key outside MAPPING_COUNTS
        """
        unknown = set(counts) - set(MAPPING_COUNTS)
        if unknown:
            raise ValueError(f"Unknown mapping counters: {', '.join(sorted(unknown))}")

        assignments = ", ".join(f"{name} = ?" for name in MAPPING_COUNTS)
        self.connection.execute(
            f"UPDATE runs SET adapter_signature = ?, database_name = ?, {assignments} WHERE run_id = ?",
            (
                adapter_signature,
                database_name,
                *(counts.get(name, 0) for name in MAPPING_COUNTS),
                run_id,
            ),
        )

    def record_reports(self, run_id: str, paths: List[str], output_dir: Optional[str]) -> None:
        self.connection.execute(
            "UPDATE runs SET reports_written = ?, output_dir = ? WHERE run_id = ?",
            (json.dumps(paths), output_dir, run_id),
        )

    def finish_run(
        self,
        run_id: str,
        duration_ms: int,
        error: Optional[BaseException] = None,
        error_traceback: Optional[str] = None,
    ) -> None:
        """Mark a run 'success', or 'error' with the exception's details when one is given."""
        if error is None:
            self.connection.execute(
                "UPDATE runs SET status = 'success', duration_ms = ? WHERE run_id = ?",
                (duration_ms, run_id),
            )
            return

        self.connection.execute(
            """
            UPDATE runs
            SET status = 'error', duration_ms = ?,
                error_type = ?, error_message = ?, error_traceback = ?
            WHERE run_id = ?
            """,
            (duration_ms, type(error).__name__, str(error), error_traceback, run_id),
        )

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        row = self.connection.execute("SELECT * FROM runs WHERE run_id = ?", (run_id,)).fetchone()
        return dict(row) if row else None

    def query_runs(
        self,
        status: Optional[str] = None,
        adapter_signature: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Runs started in the last `since_hours`, newest first."""
        clauses = ["started_at >= ?"]
        params: List[Any] = [_timestamp(timedelta(hours=since_hours))]

        for column, value in (("status", status), ("adapter_signature", adapter_signature)):
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)

        params.append(limit)
        rows = self.connection.execute(
            f"SELECT * FROM runs WHERE {' AND '.join(clauses)} "
            "ORDER BY started_at DESC, id DESC LIMIT ?",
            params,
        ).fetchall()
        return [dict(row) for row in rows]

    def get_stats(self, since_hours: int = 24) -> Dict[str, Any]:
        """Aggregate the runs of the last `since_hours`.

        Returns:
            Dict with total_runs, runs_by_status, avg_duration_ms,
            tables_mapped, warnings and a by_adapter breakdown
        """
        since = _timestamp(timedelta(hours=since_hours))
        conn = self.connection

        by_status = {
            row["status"]: row["runs"]
            for row in conn.execute(
                "SELECT status, COUNT(*) AS runs FROM runs WHERE started_at >= ? GROUP BY status",
                (since,),
            )
        }
        totals = conn.execute(
            """
            SELECT AVG(duration_ms) AS avg_duration_ms,
                   SUM(tables_count) AS tables_mapped,
                   SUM(warnings_count) AS warnings
            FROM runs WHERE started_at >= ?
            """,
            (since,),
        ).fetchone()
        by_adapter = [
            dict(row)
            for row in conn.execute(
                """
                SELECT adapter_signature, COUNT(*) AS runs,
                       SUM(tables_count) AS tables_mapped,
                       SUM(warnings_count) AS warnings
                FROM runs
                WHERE started_at >= ? AND adapter_signature IS NOT NULL
                GROUP BY adapter_signature
                ORDER BY runs DESC, adapter_signature
                """,
                (since,),
            )
        ]

        return {
            "since_hours": since_hours,
            "total_runs": sum(by_status.values()),
            "runs_by_status": by_status,
            "avg_duration_ms": round(totals["avg_duration_ms"] or 0, 2),
            "tables_mapped": totals["tables_mapped"] or 0,
            "warnings": totals["warnings"] or 0,
            "by_adapter": by_adapter,
        }

    def cleanup_old_runs(self, retention_days: int = 30) -> int:
        """Delete runs started more than `retention_days` ago and return how many."""
        deleted = self.connection.execute(
            "DELETE FROM runs WHERE started_at < ?",
            (_timestamp(timedelta(days=retention_days)),),
        ).rowcount
        if deleted:
            logger.info("Removed %d runs older than %d days", deleted, retention_days)
        return deleted
