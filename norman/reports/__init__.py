"""Report writers for mapped database catalogs."""

from .base import ReportWriter, ReportRegistry, ALL_REPORTS
from .json_report import JSONReportWriter
from .mermaid import MermaidReportWriter, generate_mermaid_erd

__all__ = [
    "ReportWriter",
    "ReportRegistry",
    "ALL_REPORTS",
    "JSONReportWriter",
    "MermaidReportWriter",
    "generate_mermaid_erd",
]
