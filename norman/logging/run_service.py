"""Records each `norman map` invocation in the run history database."""

import logging
import sqlite3
import time
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

from norman.config import settings
from norman.logging.run_db import RunDatabase

logger = logging.getLogger(__name__)

_run_logger: Optional["RunLogger"] = None


def get_run_logger() -> "RunLogger":
    """Return the process-wide run logger built from settings."""
    global _run_logger
    if _run_logger is None:
        _run_logger = RunLogger(
            db_path=settings.run_logging_db_path,
            enabled=settings.run_logging_enabled,
            retention_days=settings.run_logging_retention_days,
        )
    return _run_logger


def count_objects(result) -> Dict[str, int]:
    """Object counts of a MappingResult, keyed like the run history columns."""
    schemas = list(result.database.schemas.values())
    tables = result.database.all_tables()
    return {
        "schemas_count": len(schemas),
        "tables_count": len(tables),
        "columns_count": sum(len(t.columns) for t in tables),
        "views_count": sum(len(s.views) for s in schemas),
        "routines_count": sum(len(s.functions) + len(s.procedures) for s in schemas),
        "warnings_count": len(result.errors),
    }


@dataclass
class RunContext:
    """What a run produced, filled in by the command while it executes."""

    run_id: str
    command: str
    started: float = field(default_factory=time.monotonic)
    adapter_signature: Optional[str] = None
    database_name: Optional[str] = None
    counts: Dict[str, int] = field(default_factory=dict)
    reports_written: List[str] = field(default_factory=list)
    output_dir: Optional[str] = None

    def record_mapping(self, result, adapter_signature: str) -> None:
        self.adapter_signature = adapter_signature
        self.database_name = result.database.name
        self.counts = count_objects(result)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)


class RunLogger:
    """Wraps a command in a run history entry.

    Failures writing the history are logged as warnings and never reach
    the command. A disabled logger still yields a RunContext but stores nothing.
    """

    def __init__(self, db_path: Optional[str] = None, enabled: bool = True, retention_days: int = 30):
        self.enabled = enabled
        self.db: Optional[RunDatabase] = None

        if enabled:
            try:
                self.db = RunDatabase(db_path)
                self.db.cleanup_old_runs(retention_days)
            except (sqlite3.Error, OSError) as e:
                logger.warning("Run history disabled, cannot open database: %s", e)
                self.db = None
                self.enabled = False

    def _write(self, what: str, action: Callable[..., Any], *args: Any) -> None:
        try:
            action(*args)
        except sqlite3.Error as e:
            logger.warning("Failed to record run %s: %s", what, e)

    def _record_results(self, ctx: RunContext) -> None:
        if ctx.database_name is not None:
            self._write(
                "mapping",
                self.db.record_mapping,
                ctx.run_id,
                ctx.adapter_signature,
                ctx.database_name,
                ctx.counts,
            )
        if ctx.reports_written:
            self._write("reports", self.db.record_reports, ctx.run_id, ctx.reports_written, ctx.output_dir)

    @contextmanager
    def log_run(self, command: str, arguments: Optional[Dict[str, Any]] = None) -> Iterator[RunContext]:
        """Record the run around the `with` body; exceptions are stored and re-raised.

        Args:
            command: Command name, e.g. 'map'
            arguments: Command options worth keeping, without the connection string
        """
        ctx = RunContext(run_id=uuid.uuid4().hex[:8], command=command)
        if self.db is None:
            yield ctx
            return

        self._write("start", self.db.start_run, ctx.run_id, command, arguments)
        try:
            yield ctx
        except Exception as e:
            self._record_results(ctx)
            self._write("error", self.db.finish_run, ctx.run_id, ctx.elapsed_ms, e, traceback.format_exc())
            logger.debug("Run %s failed after %dms: %s", ctx.run_id, ctx.elapsed_ms, e)
            raise

        self._record_results(ctx)
        self._write("success", self.db.finish_run, ctx.run_id, ctx.elapsed_ms)
        logger.debug("Run %s finished in %dms", ctx.run_id, ctx.elapsed_ms)

    def query_runs(
        self,
        status: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        if self.db is None:
            return []
        return self.db.query_runs(status=status, since_hours=since_hours, limit=limit)
