"""Database-specific catalog code normalization strategies.

Each engine encodes nullability, referential actions, constraint kinds and
trigger metadata its own way. A Dialect turns those codes into the shared
model enumerations so no engine-specific value reaches the model.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .models import (
    ConstraintType,
    ParameterMode,
    ReferentialAction,
    TriggerEvent,
    TriggerTiming,
)


class Dialect(ABC):
    """Abstract base class for catalog code normalization."""

    @abstractmethod
    def referential_action(self, code: Any) -> ReferentialAction:
        """Convert an engine referential action code."""
        pass

    @abstractmethod
    def constraint_type(self, code: Any) -> Optional[ConstraintType]:
        """Convert an engine constraint kind. Returns None for unmapped kinds."""
        pass

    def to_bool(self, value: Any) -> bool:
        """Collapse YES/NO style flags and engine booleans into a bool."""
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        if isinstance(value, (int, float)):
            return value != 0
        return str(value).strip().upper() in ("YES", "Y", "TRUE", "T", "1", "ON")

    def index_type(self, value: Any) -> str:
        if not value:
            return "btree"
        return str(value).strip().lower()

    def trigger_timing(self, value: Any) -> Optional[TriggerTiming]:
        if value is None:
            return None
        return TriggerTiming(" ".join(str(value).upper().split()))

    def trigger_event(self, value: Any) -> TriggerEvent:
        return TriggerEvent(str(value).strip().upper())

    def parameter_mode(self, value: Any) -> ParameterMode:
        if not value:
            return ParameterMode.IN
        mode = str(value).strip().upper()
        if mode in ParameterMode.__members__:
            return ParameterMode(mode)
        # VARIADIC and other input-only modes
        return ParameterMode.IN

    def for_each(self, value: Any) -> str:
        if not value:
            return "ROW"
        return str(value).strip().upper()


class PostgresDialect(Dialect):
    """Normalization for PostgreSQL pg_catalog codes."""

    REFERENTIAL_ACTIONS = {
        "a": ReferentialAction.NO_ACTION,
        "r": ReferentialAction.RESTRICT,
        "c": ReferentialAction.CASCADE,
        "n": ReferentialAction.SET_NULL,
        "d": ReferentialAction.SET_DEFAULT,
    }

    CONSTRAINT_TYPES = {
        "c": ConstraintType.CHECK,
        "u": ConstraintType.UNIQUE,
        "n": ConstraintType.NOT_NULL,
    }

    def referential_action(self, code: Any) -> ReferentialAction:
        if isinstance(code, bytes):
            code = code.decode()
        try:
            return self.REFERENTIAL_ACTIONS[code]
        except KeyError:
            raise ValueError(f"Unknown PostgreSQL referential action code: {code!r}")

    def constraint_type(self, code: Any) -> Optional[ConstraintType]:
        if isinstance(code, bytes):
            code = code.decode()
        return self.CONSTRAINT_TYPES.get(code)


class MySQLDialect(Dialect):
    """Normalization for MySQL information_schema values."""

    CONSTRAINT_TYPES = {
        "CHECK": ConstraintType.CHECK,
        "UNIQUE": ConstraintType.UNIQUE,
    }

    def referential_action(self, code: Any) -> ReferentialAction:
        # information_schema spells rules out in full, e.g. 'SET NULL'
        rule = " ".join(str(code or "NO ACTION").upper().split())
        try:
            return ReferentialAction(rule)
        except ValueError:
            raise ValueError(f"Unknown MySQL referential rule: {code!r}")

    def constraint_type(self, code: Any) -> Optional[ConstraintType]:
        return self.CONSTRAINT_TYPES.get(str(code).upper())

    def is_unique_index(self, non_unique: Any) -> bool:
        """STATISTICS reports NON_UNIQUE, so 0 means unique."""
        return not self.to_bool(non_unique)
