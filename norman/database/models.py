"""Engine-independent data models for mapped database catalogs.

Every entity is created once per mapping run. Children are attached through the
parent's ``add_*`` methods, which also set the child's back-reference to the
parent. Collections keyed by name are last-write-wins.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReferentialAction(str, Enum):
    """Action taken on referencing rows when a referenced row changes."""
    NO_ACTION = "NO ACTION"
    RESTRICT = "RESTRICT"
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"


class ConstraintType(str, Enum):
    """Table-level constraint kinds."""
    CHECK = "CHECK"
    UNIQUE = "UNIQUE"
    NOT_NULL = "NOT NULL"


class TriggerTiming(str, Enum):
    BEFORE = "BEFORE"
    AFTER = "AFTER"
    INSTEAD_OF = "INSTEAD OF"


class TriggerEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ParameterMode(str, Enum):
    IN = "IN"
    OUT = "OUT"
    INOUT = "INOUT"


class IndexType(str, Enum):
    """Common index access methods. Engines may report others."""
    BTREE = "btree"
    HASH = "hash"


MAX_SEQUENCE_VALUE = 9223372036854775807


def _names(columns: List["Column"]) -> List[str]:
    return [col.name for col in columns]


def _value(enum_or_str: Any) -> Any:
    return enum_or_str.value if isinstance(enum_or_str, Enum) else enum_or_str


@dataclass(eq=False)
class Column:
    """Represents a table or view column."""
    name: str
    data_type: str = ""
    is_nullable: bool = True
    default_value: Optional[str] = None
    ordinal_position: int = 0
    char_max_length: Optional[int] = None
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    table: Optional["Table"] = field(default=None, repr=False)

    @classmethod
    def placeholder(cls, name: str) -> "Column":
        """Build a name-only stand-in for a column on another table."""
        return cls(name=name)

    @property
    def fully_qualified_name(self) -> str:
        if self.table is not None:
            return f"{self.table.fully_qualified_name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "dataType": self.data_type,
            "nullable": self.is_nullable,
            "ordinalPosition": self.ordinal_position,
        }
        if self.default_value is not None:
            data["defaultValue"] = self.default_value
        if self.char_max_length is not None:
            data["charMaxLength"] = self.char_max_length
        if self.numeric_precision is not None:
            data["numericPrecision"] = self.numeric_precision
        if self.numeric_scale is not None:
            data["numericScale"] = self.numeric_scale
        return data


@dataclass(eq=False)
class PrimaryKey:
    """Represents a primary key. Columns are kept in key order."""
    name: str
    columns: List[Column] = field(default_factory=list)
    table: Optional["Table"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    @property
    def column_names(self) -> List[str]:
        return _names(self.columns)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "columns": self.column_names}


@dataclass(eq=False)
class Index:
    """Represents an index. Columns are kept in index order."""
    name: str
    columns: List[Column] = field(default_factory=list)
    is_unique: bool = False
    is_primary: bool = False
    index_type: str = IndexType.BTREE.value
    table: Optional["Table"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    @property
    def column_names(self) -> List[str]:
        return _names(self.columns)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": self.column_names,
            "isUnique": self.is_unique,
            "isPrimary": self.is_primary,
            "indexType": _value(self.index_type),
        }


@dataclass(eq=False)
class ForeignKey:
    """Represents a foreign key.

    ``columns`` holds the owning table's real Column objects.
    ``referenced_columns`` holds name-only placeholders: they are never linked
    to the referenced table's Column objects, even when that table is mapped.
    """
    name: str
    referenced_table: str
    referenced_schema: str = ""
    columns: List[Column] = field(default_factory=list)
    referenced_columns: List[Column] = field(default_factory=list)
    on_delete: ReferentialAction = ReferentialAction.NO_ACTION
    on_update: ReferentialAction = ReferentialAction.NO_ACTION
    table: Optional["Table"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    def add_referenced_column(self, column: Column) -> None:
        self.referenced_columns.append(column)

    @property
    def column_names(self) -> List[str]:
        return _names(self.columns)

    @property
    def referenced_column_names(self) -> List[str]:
        return _names(self.referenced_columns)

    def resolve_referenced_table(self, database: "Database") -> Optional["Table"]:
        """Look up the referenced table in a mapped database.

        Falls back to the owning table's schema when no referenced schema was
        recorded. The placeholders in ``referenced_columns`` are left untouched.
        """
        schema_name = self.referenced_schema
        if not schema_name and self.table is not None and self.table.schema is not None:
            schema_name = self.table.schema.name
        return database.get_table(schema_name, self.referenced_table)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "columns": self.column_names,
            "referencedSchema": self.referenced_schema,
            "referencedTable": self.referenced_table,
            "referencedColumns": self.referenced_column_names,
            "onDelete": _value(self.on_delete),
            "onUpdate": _value(self.on_update),
        }


@dataclass(eq=False)
class Constraint:
    """Represents a CHECK, UNIQUE or NOT NULL table constraint."""
    name: str
    constraint_type: ConstraintType
    columns: List[Column] = field(default_factory=list)
    check_expression: str = ""
    table: Optional["Table"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    @property
    def column_names(self) -> List[str]:
        return _names(self.columns)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": _value(self.constraint_type),
            "columns": self.column_names,
        }
        if self.check_expression:
            data["checkExpression"] = self.check_expression
        return data


@dataclass(eq=False)
class FunctionParameter:
    name: str
    data_type: str
    mode: ParameterMode = ParameterMode.IN

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "dataType": self.data_type, "mode": _value(self.mode)}


@dataclass(eq=False)
class Function:
    """Represents a stored function."""
    name: str
    definition: str = ""
    return_type: str = ""
    language: str = "sql"
    parameters: List[FunctionParameter] = field(default_factory=list)
    schema: Optional["Schema"] = field(default=None, repr=False)

    def add_parameter(self, parameter: FunctionParameter) -> None:
        self.parameters.append(parameter)

    @property
    def fully_qualified_name(self) -> str:
        if self.schema is not None:
            return f"{self.schema.name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "definition": self.definition,
            "returnType": self.return_type,
            "language": self.language,
        }
        if self.parameters:
            data["parameters"] = [p.to_dict() for p in self.parameters]
        return data


@dataclass(eq=False)
class Procedure:
    """Represents a stored procedure."""
    name: str
    definition: str = ""
    language: str = "sql"
    parameters: List[FunctionParameter] = field(default_factory=list)
    schema: Optional["Schema"] = field(default=None, repr=False)

    def add_parameter(self, parameter: FunctionParameter) -> None:
        self.parameters.append(parameter)

    @property
    def fully_qualified_name(self) -> str:
        if self.schema is not None:
            return f"{self.schema.name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "definition": self.definition,
            "language": self.language,
        }
        if self.parameters:
            data["parameters"] = [p.to_dict() for p in self.parameters]
        return data


@dataclass(eq=False)
class Trigger:
    """Represents a table trigger. Events accumulate in catalog order."""
    name: str
    definition: str = ""
    timing: Optional[TriggerTiming] = None
    events: List[TriggerEvent] = field(default_factory=list)
    function: Optional[Function] = None
    for_each: str = "ROW"
    table: Optional["Table"] = field(default=None, repr=False)

    def add_event(self, event: TriggerEvent) -> None:
        self.events.append(event)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "definition": self.definition,
            "timing": _value(self.timing) if self.timing is not None else None,
            "events": [_value(e) for e in self.events],
            "forEach": self.for_each,
        }
        if self.function is not None:
            data["function"] = self.function.name
        return data


@dataclass(eq=False)
class View:
    """Represents a view."""
    name: str
    definition: str = ""
    columns: List[Column] = field(default_factory=list)
    schema: Optional["Schema"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        self.columns.append(column)

    @property
    def fully_qualified_name(self) -> str:
        if self.schema is not None:
            return f"{self.schema.name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "definition": self.definition}
        if self.columns:
            data["columns"] = [c.to_dict() for c in self.columns]
        return data


@dataclass(eq=False)
class Sequence:
    """Represents a sequence generator."""
    name: str
    start_value: int = 1
    increment: int = 1
    min_value: int = 1
    max_value: int = MAX_SEQUENCE_VALUE
    cache: int = 1
    cycle: bool = False
    schema: Optional["Schema"] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "startValue": self.start_value,
            "increment": self.increment,
            "minValue": self.min_value,
            "maxValue": self.max_value,
            "cache": self.cache,
            "cycle": self.cycle,
        }


@dataclass(eq=False)
class Table:
    """Represents a database table."""
    name: str
    columns: Dict[str, Column] = field(default_factory=dict)
    primary_key: Optional[PrimaryKey] = None
    foreign_keys: List[ForeignKey] = field(default_factory=list)
    indexes: List[Index] = field(default_factory=list)
    constraints: List[Constraint] = field(default_factory=list)
    triggers: List[Trigger] = field(default_factory=list)
    schema: Optional["Schema"] = field(default=None, repr=False)

    def add_column(self, column: Column) -> None:
        column.table = self
        self.columns[column.name] = column

    def get_column(self, name: str) -> Optional[Column]:
        return self.columns.get(name)

    def ordered_columns(self) -> List[Column]:
        """Columns sorted by ordinal position."""
        return sorted(self.columns.values(), key=lambda c: c.ordinal_position)

    def set_primary_key(self, primary_key: PrimaryKey) -> None:
        primary_key.table = self
        self.primary_key = primary_key

    def add_foreign_key(self, foreign_key: ForeignKey) -> None:
        foreign_key.table = self
        self.foreign_keys.append(foreign_key)

    def add_index(self, index: Index) -> None:
        index.table = self
        self.indexes.append(index)

    def add_constraint(self, constraint: Constraint) -> None:
        constraint.table = self
        self.constraints.append(constraint)

    def add_trigger(self, trigger: Trigger) -> None:
        trigger.table = self
        self.triggers.append(trigger)

    @property
    def fully_qualified_name(self) -> str:
        if self.schema is not None:
            return f"{self.schema.name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "columns": [c.to_dict() for c in self.ordered_columns()],
        }
        if self.primary_key is not None:
            data["primaryKey"] = self.primary_key.to_dict()
        if self.foreign_keys:
            data["foreignKeys"] = [fk.to_dict() for fk in self.foreign_keys]
        if self.indexes:
            data["indexes"] = [i.to_dict() for i in self.indexes]
        if self.constraints:
            data["constraints"] = [c.to_dict() for c in self.constraints]
        if self.triggers:
            data["triggers"] = [t.to_dict() for t in self.triggers]
        return data


def _sorted_dicts(items: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [items[name].to_dict() for name in sorted(items)]


@dataclass(eq=False)
class Schema:
    """Represents a database schema."""
    name: str
    owner: str = ""
    tables: Dict[str, Table] = field(default_factory=dict)
    views: Dict[str, View] = field(default_factory=dict)
    functions: Dict[str, Function] = field(default_factory=dict)
    procedures: Dict[str, Procedure] = field(default_factory=dict)
    sequences: Dict[str, Sequence] = field(default_factory=dict)
    database: Optional["Database"] = field(default=None, repr=False)

    def add_table(self, table: Table) -> None:
        table.schema = self
        self.tables[table.name] = table

    def add_view(self, view: View) -> None:
        view.schema = self
        self.views[view.name] = view

    def add_function(self, function: Function) -> None:
        function.schema = self
        self.functions[function.name] = function

    def add_procedure(self, procedure: Procedure) -> None:
        procedure.schema = self
        self.procedures[procedure.name] = procedure

    def add_sequence(self, sequence: Sequence) -> None:
        sequence.schema = self
        self.sequences[sequence.name] = sequence

    @property
    def fully_qualified_name(self) -> str:
        if self.database is not None:
            return f"{self.database.name}.{self.name}"
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "owner": self.owner,
            "tables": _sorted_dicts(self.tables),
            "views": _sorted_dicts(self.views),
            "functions": _sorted_dicts(self.functions),
            "procedures": _sorted_dicts(self.procedures),
            "sequences": _sorted_dicts(self.sequences),
        }


@dataclass(eq=False)
class Database:
    """Represents a database. Root of the mapped graph."""
    name: str
    schemas: Dict[str, Schema] = field(default_factory=dict)

    def add_schema(self, schema: Schema) -> None:
        schema.database = self
        self.schemas[schema.name] = schema

    def all_tables(self) -> List[Table]:
        """Get all tables across all schemas."""
        tables = []
        for schema in self.schemas.values():
            tables.extend(schema.tables.values())
        return tables

    def get_table(self, schema_name: str, table_name: str) -> Optional[Table]:
        schema = self.schemas.get(schema_name)
        if schema is None:
            return None
        return schema.tables.get(table_name)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "schemas": _sorted_dicts(self.schemas)}
