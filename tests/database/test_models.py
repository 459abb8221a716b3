"""Tests for the catalog domain model."""

import json

from norman.database.models import (
    Column,
    Constraint,
    ConstraintType,
    Database,
    ForeignKey,
    Function,
    Index,
    Schema,
    Sequence,
    Table,
    Trigger,
    TriggerEvent,
    TriggerTiming,
    View,
)


class TestParentLinks:
    """Test that add_* methods set back-references."""

    def test_schema_and_table_links(self, sample_database):
        """Test database, schema and table back-references."""
        schema = sample_database.schemas["public"]
        users = schema.tables["users"]

        assert schema.database is sample_database
        assert users.schema is schema
        assert users.get_column("id").table is users
        assert users.primary_key.table is users

    def test_schema_children_links(self):
        """Test views, functions and sequences point to their schema."""
        schema = Schema(name="public")
        view = View(name="v")
        fn = Function(name="f")
        seq = Sequence(name="s")
        schema.add_view(view)
        schema.add_function(fn)
        schema.add_sequence(seq)

        assert view.schema is schema
        assert fn.schema is schema
        assert seq.schema is schema
        assert fn.fully_qualified_name == "public.f"

    def test_table_children_links(self):
        """Test indexes, constraints and triggers point to their table."""
        table = Table(name="t")
        index = Index(name="i")
        constraint = Constraint(name="c", constraint_type=ConstraintType.CHECK)
        trigger = Trigger(name="tr")
        table.add_index(index)
        table.add_constraint(constraint)
        table.add_trigger(trigger)

        assert index.table is table
        assert constraint.table is table
        assert trigger.table is table


class TestCollections:
    """Test name-keyed and ordered collections."""

    def test_columns_last_write_wins(self):
        """Test adding a column with an existing name replaces it."""
        table = Table(name="t")
        table.add_column(Column(name="a", data_type="integer"))
        table.add_column(Column(name="a", data_type="text"))

        assert len(table.columns) == 1
        assert table.get_column("a").data_type == "text"

    def test_ordered_columns(self):
        """Test columns sort by ordinal position, not insertion order."""
        table = Table(name="t")
        table.add_column(Column(name="b", ordinal_position=2))
        table.add_column(Column(name="a", ordinal_position=1))

        assert [c.name for c in table.ordered_columns()] == ["a", "b"]

    def test_trigger_events_accumulate(self):
        """Test trigger events keep catalog order."""
        trigger = Trigger(name="tr", timing=TriggerTiming.AFTER)
        trigger.add_event(TriggerEvent.INSERT)
        trigger.add_event(TriggerEvent.UPDATE)

        assert trigger.events == [TriggerEvent.INSERT, TriggerEvent.UPDATE]

    def test_all_tables_across_schemas(self, sample_database):
        """Test all_tables collects tables from every schema."""
        audit = Schema(name="audit")
        audit.add_table(Table(name="log"))
        sample_database.add_schema(audit)

        names = sorted(t.fully_qualified_name for t in sample_database.all_tables())
        assert names == ["audit.log", "public.orders", "public.users"]


class TestForeignKeys:
    """Test foreign key placeholders and resolution."""

    def test_placeholder_columns_are_detached(self, sample_database):
        """Test referenced columns are name-only stand-ins."""
        fk = sample_database.schemas["public"].tables["orders"].foreign_keys[0]
        users = sample_database.schemas["public"].tables["users"]

        assert fk.referenced_column_names == ["id"]
        assert fk.referenced_columns[0].table is None
        assert fk.referenced_columns[0] is not users.get_column("id")

    def test_placeholder_holds_only_a_name(self):
        """Test a placeholder keeps every other field at its default."""
        placeholder = Column.placeholder("id")

        assert placeholder.name == "id"
        assert placeholder.data_type == ""
        assert placeholder.is_nullable is True
        assert placeholder.default_value is None
        assert placeholder.ordinal_position == 0
        assert placeholder.table is None

    def test_resolve_referenced_table(self, sample_database):
        """Test resolving a mapped referenced table."""
        fk = sample_database.schemas["public"].tables["orders"].foreign_keys[0]

        assert fk.resolve_referenced_table(sample_database) is sample_database.schemas["public"].tables["users"]
        assert fk.referenced_columns[0].table is None

    def test_resolve_falls_back_to_own_schema(self, sample_database):
        """Test an FK without a referenced schema resolves in its table's schema."""
        orders = sample_database.schemas["public"].tables["orders"]
        fk = ForeignKey(name="fk", referenced_table="users")
        orders.add_foreign_key(fk)

        assert fk.resolve_referenced_table(sample_database).name == "users"

    def test_resolve_unmapped_table(self, sample_database):
        """Test an FK to an unmapped table resolves to None."""
        fk = ForeignKey(name="fk", referenced_table="ghost", referenced_schema="public")

        assert fk.resolve_referenced_table(sample_database) is None


class TestSerialization:
    """Test to_dict output."""

    def test_database_to_dict_is_json(self, sample_database):
        """Test the whole graph serializes without cycles."""
        data = json.loads(json.dumps(sample_database.to_dict()))

        assert data["name"] == "shop"
        schema = data["schemas"][0]
        assert [t["name"] for t in schema["tables"]] == ["orders", "users"]

    def test_foreign_key_to_dict(self, sample_database):
        """Test FK serialization uses enum values."""
        fk = sample_database.schemas["public"].tables["orders"].foreign_keys[0]

        assert fk.to_dict() == {
            "name": "orders_user_id_fkey",
            "columns": ["user_id"],
            "referencedSchema": "public",
            "referencedTable": "users",
            "referencedColumns": ["id"],
            "onDelete": "CASCADE",
            "onUpdate": "NO ACTION",
        }

    def test_column_optional_fields_omitted(self):
        """Test unset optional column attributes are left out."""
        data = Column(name="a", data_type="text", ordinal_position=1).to_dict()

        assert data == {"name": "a", "dataType": "text", "nullable": True, "ordinalPosition": 1}

    def test_trigger_function_by_name(self):
        """Test a trigger serializes its function by name only."""
        trigger = Trigger(name="tr", timing=TriggerTiming.BEFORE, function=Function(name="audit"))
        trigger.add_event(TriggerEvent.DELETE)

        data = trigger.to_dict()
        assert data["function"] == "audit"
        assert data["events"] == ["DELETE"]
        assert data["timing"] == "BEFORE"

    def test_empty_database(self):
        """Test an empty database serializes to an empty schema list."""
        assert Database(name="empty").to_dict() == {"name": "empty", "schemas": []}
