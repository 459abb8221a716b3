"""JSON inventory report."""

import json

from ..database.models import Database
from .base import ReportWriter


class JSONReportWriter(ReportWriter):
    """Writes the full mapped catalog as an indented JSON document."""

    report_keys = ["json"]
    file_extension = "json"
    report_name = "JSON Report"

    def __init__(self, indent: int = 2):
        self.indent = indent

    def render(self, database: Database) -> str:
        return json.dumps(database.to_dict(), indent=self.indent)
