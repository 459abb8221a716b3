"""Wiring between the adapter manager, the mapping pipeline and report writers."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .database import AdapterManager, DatabaseAdapter, MappingResult, MySQLAdapter, PostgresAdapter
from .database.models import Database
from .errors import NoActiveConnectionError, ReportError
from .reports import JSONReportWriter, MermaidReportWriter, ReportRegistry, ReportWriter

logger = logging.getLogger(__name__)


def default_adapters() -> List[DatabaseAdapter]:
    """Adapters in the order they are tried against a connection string."""
    return [PostgresAdapter(), MySQLAdapter()]


def default_report_writers() -> List[ReportWriter]:
    return [JSONReportWriter(), MermaidReportWriter()]


def report_file_path(output_dir: str, database_name: str, writer: ReportWriter) -> str:
    """Build ``{output_dir}/{db}_{report name}.{ext}`` with spaces in the file name
    replaced by underscores."""
    file_name = f"{database_name}_{writer.report_name}.{writer.file_extension}".replace(" ", "_")
    return os.path.join(output_dir, file_name)


@dataclass
class ReportOutcome:
    """Files written and failures from one report pass."""
    written: List[str] = field(default_factory=list)
    failures: List[ReportError] = field(default_factory=list)


class Runner:
    """Connects, maps and writes reports for one connection string."""

    def __init__(
        self,
        adapters: Optional[List[DatabaseAdapter]] = None,
        writers: Optional[List[ReportWriter]] = None,
    ):
        self.manager = AdapterManager(adapters if adapters is not None else default_adapters())
        self.registry = ReportRegistry(writers if writers is not None else default_report_writers())

    def map(self, connection_string: str) -> Tuple[DatabaseAdapter, MappingResult]:
        """Connect with the first compatible adapter and map its database.

        The connection is closed afterwards, also when mapping fails.
        """
        adapter = self.manager.connect(connection_string)
        try:
            return adapter, adapter.map_database()
        finally:
            try:
                self.manager.close()
            except NoActiveConnectionError:
                logger.debug("Connection for %s already closed", adapter.unique_signature)

    def write_reports(
        self,
        database: Database,
        writers: List[ReportWriter],
        output_dir: str,
    ) -> ReportOutcome:
        """Write each selected report, carrying on past failing writers."""
        outcome = ReportOutcome()
        if not writers:
            return outcome

        os.makedirs(output_dir, exist_ok=True)
        for writer in writers:
            path = report_file_path(output_dir, database.name, writer)
            try:
                writer.write_report(path, database)
            except ReportError as e:
                logger.error("%s", e.message)
                outcome.failures.append(e)
                continue
            logger.info("Wrote %s to %s", writer.report_name, path)
            outcome.written.append(path)
        return outcome
