"""Base classes for report writers."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List

from ..database.models import Database
from ..errors import ReportError

logger = logging.getLogger(__name__)

ALL_REPORTS = "all"


class ReportWriter(ABC):
    """Abstract base class for report writers.

    Subclasses render a mapped Database to text; ``write_report`` stores it.
    """

    # Selector keys accepted by --report-types
    report_keys: List[str] = []
    file_extension: str = ""
    report_name: str = ""

    @abstractmethod
    def render(self, database: Database) -> str:
        """Render the database as report text."""
        pass

    def write_report(self, path: str, database: Database) -> None:
        """Write the report for a database to a file.

        Raises:
            ReportError: If the report cannot be rendered or written
        """
        try:
            content = self.render(database)
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except (OSError, TypeError, ValueError) as e:
            raise ReportError(self.report_name, str(e)) from e


class ReportRegistry:
    """Report writers indexed by their selector keys."""

    def __init__(self, writers: List[ReportWriter]):
        self.writers = list(writers)
        self._by_key: Dict[str, ReportWriter] = {}
        for writer in self.writers:
            for key in writer.report_keys:
                self._by_key[key] = writer

    @property
    def keys(self) -> List[str]:
        return list(self._by_key)

    def get(self, key: str):
        return self._by_key.get(key)

    def select(self, selection: str) -> List[ReportWriter]:
        """Resolve a comma-separated list of report keys.

        ``all`` selects every writer. Unknown keys are logged and ignored.

        Returns:
            Selected writers in registration order, without duplicates
        """
        chosen = set()
        for key in (selection or "").split(","):
            key = key.strip()
            if not key:
                continue
            if key == ALL_REPORTS:
                return list(self.writers)
            writer = self._by_key.get(key)
            if writer is None:
                logger.warning("Unknown report type '%s' specified, ignoring", key)
                continue
            chosen.add(id(writer))
        return [w for w in self.writers if id(w) in chosen]

    def help_string(self) -> str:
        """Describe the accepted keys, e.g. ``(json, mermaid, all)``."""
        return "(" + ", ".join(self.keys + [ALL_REPORTS]) + ")"
