"""Database catalog mapping module for norman.

This module provides the engine-independent catalog model and the adapters
that populate it, with implementations for PostgreSQL and MySQL.
"""

from .models import (
    Column,
    Constraint,
    ConstraintType,
    Database,
    ForeignKey,
    Function,
    FunctionParameter,
    Index,
    IndexType,
    ParameterMode,
    PrimaryKey,
    Procedure,
    ReferentialAction,
    Schema,
    Sequence,
    Table,
    Trigger,
    TriggerEvent,
    TriggerTiming,
    View,
)
from .dialects import Dialect, PostgresDialect, MySQLDialect
from .base import DatabaseAdapter, MappingResult
from .postgres import PostgresAdapter
from .mysql import MySQLAdapter
from .manager import AdapterManager

__all__ = [
    # Data models
    "Column",
    "Constraint",
    "ConstraintType",
    "Database",
    "ForeignKey",
    "Function",
    "FunctionParameter",
    "Index",
    "IndexType",
    "ParameterMode",
    "PrimaryKey",
    "Procedure",
    "ReferentialAction",
    "Schema",
    "Sequence",
    "Table",
    "Trigger",
    "TriggerEvent",
    "TriggerTiming",
    "View",
    # Dialects
    "Dialect",
    "PostgresDialect",
    "MySQLDialect",
    # Base classes
    "DatabaseAdapter",
    "MappingResult",
    # Adapters
    "PostgresAdapter",
    "MySQLAdapter",
    "AdapterManager",
]
