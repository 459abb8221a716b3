"""Run history for norman.

Records mapping runs in a local SQLite database to help with
debugging and auditing.
"""

from norman.logging.run_db import RunDatabase, get_default_run_db_path
from norman.logging.run_service import (
    RunContext,
    RunLogger,
    count_objects,
    get_run_logger,
)

__all__ = [
    "RunDatabase",
    "get_default_run_db_path",
    "RunContext",
    "RunLogger",
    "count_objects",
    "get_run_logger",
]
