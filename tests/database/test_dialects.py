"""Tests for catalog code normalization."""

import pytest

from norman.database.dialects import MySQLDialect, PostgresDialect
from norman.database.models import (
    ConstraintType,
    ParameterMode,
    ReferentialAction,
    TriggerEvent,
    TriggerTiming,
)


class TestPostgresDialect:
    """Test PostgreSQL pg_catalog codes."""

    @pytest.mark.parametrize("code,expected", [
        ("a", ReferentialAction.NO_ACTION),
        ("r", ReferentialAction.RESTRICT),
        ("c", ReferentialAction.CASCADE),
        ("n", ReferentialAction.SET_NULL),
        ("d", ReferentialAction.SET_DEFAULT),
        (b"c", ReferentialAction.CASCADE),
    ])
    def test_referential_actions(self, code, expected):
        """Test confdeltype/confupdtype codes."""
        assert PostgresDialect().referential_action(code) == expected

    def test_unknown_referential_action(self):
        """Test an unknown code is rejected."""
        with pytest.raises(ValueError):
            PostgresDialect().referential_action("x")

    def test_constraint_types(self):
        """Test contype codes, with unmapped kinds returning None."""
        dialect = PostgresDialect()

        assert dialect.constraint_type("c") == ConstraintType.CHECK
        assert dialect.constraint_type("u") == ConstraintType.UNIQUE
        assert dialect.constraint_type("n") == ConstraintType.NOT_NULL
        assert dialect.constraint_type("x") is None


class TestMySQLDialect:
    """Test MySQL information_schema values."""

    @pytest.mark.parametrize("rule,expected", [
        ("CASCADE", ReferentialAction.CASCADE),
        ("SET NULL", ReferentialAction.SET_NULL),
        ("set  default", ReferentialAction.SET_DEFAULT),
        ("RESTRICT", ReferentialAction.RESTRICT),
        ("NO ACTION", ReferentialAction.NO_ACTION),
        (None, ReferentialAction.NO_ACTION),
    ])
    def test_referential_rules(self, rule, expected):
        """Test DELETE_RULE/UPDATE_RULE spellings."""
        assert MySQLDialect().referential_action(rule) == expected

    def test_unknown_rule(self):
        """Test an unknown rule is rejected."""
        with pytest.raises(ValueError):
            MySQLDialect().referential_action("EXPLODE")

    def test_unique_index_from_non_unique(self):
        """Test NON_UNIQUE is inverted."""
        dialect = MySQLDialect()

        assert dialect.is_unique_index(0) is True
        assert dialect.is_unique_index(1) is False
        assert dialect.is_unique_index("1") is False


class TestSharedNormalization:
    """Test conversions common to every dialect."""

    @pytest.mark.parametrize("value,expected", [
        ("YES", True),
        ("NO", False),
        ("yes", True),
        (True, True),
        (False, False),
        (1, True),
        (0, False),
        (None, False),
    ])
    def test_to_bool(self, value, expected):
        """Test YES/NO flags and engine booleans."""
        assert PostgresDialect().to_bool(value) is expected

    def test_trigger_timing(self):
        """Test timing values including INSTEAD OF."""
        dialect = MySQLDialect()

        assert dialect.trigger_timing("before") == TriggerTiming.BEFORE
        assert dialect.trigger_timing("INSTEAD  OF") == TriggerTiming.INSTEAD_OF
        assert dialect.trigger_timing(None) is None

    def test_trigger_event(self):
        """Test event names, limited to row-level DML events."""
        dialect = PostgresDialect()

        assert dialect.trigger_event("insert") == TriggerEvent.INSERT
        assert dialect.trigger_event(" Delete ") == TriggerEvent.DELETE
        assert [e.value for e in TriggerEvent] == ["INSERT", "UPDATE", "DELETE"]
        with pytest.raises(ValueError):
            dialect.trigger_event("TRUNCATE")

    def test_parameter_mode(self):
        """Test parameter modes default to IN."""
        dialect = PostgresDialect()

        assert dialect.parameter_mode("OUT") == ParameterMode.OUT
        assert dialect.parameter_mode("INOUT") == ParameterMode.INOUT
        assert dialect.parameter_mode(None) == ParameterMode.IN
        assert dialect.parameter_mode("VARIADIC") == ParameterMode.IN

    def test_index_type(self):
        """Test access method names are lower-cased with btree as default."""
        dialect = MySQLDialect()

        assert dialect.index_type("BTREE") == "btree"
        assert dialect.index_type("FULLTEXT") == "fulltext"
        assert dialect.index_type(None) == "btree"
