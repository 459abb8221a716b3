"""Mermaid entity-relationship diagram report."""

from typing import List

from ..database.models import Column, Database, ForeignKey, Schema, Table
from .base import ReportWriter


# Prefix-matched simplifications, checked in order
_TYPE_PREFIXES = [
    (("character varying", "varchar"), "varchar"),
    (("integer",), "int"),
    (("bigint",), "bigint"),
    (("smallint",), "smallint"),
    (("numeric", "decimal"), "decimal"),
    (("boolean",), "bool"),
    (("timestamp",), "timestamp"),
    (("uuid",), "uuid"),
    (("json",), "json"),
]

_TYPE_ALIASES = {
    "int": "int",
    "int4": "int",
    "int8": "bigint",
    "int2": "smallint",
    "bool": "bool",
    "date": "date",
    "time": "time",
    "text": "text",
}


def sanitize_name(name: str) -> str:
    """Replace characters Mermaid does not accept in identifiers."""
    return name.replace("-", "_").replace(" ", "_")


def simplify_data_type(data_type: str) -> str:
    """Simplify an engine data type for diagram readability."""
    dt = data_type.lower()
    for prefixes, simple in _TYPE_PREFIXES:
        if dt.startswith(prefixes):
            return simple
    if dt in _TYPE_ALIASES:
        return _TYPE_ALIASES[dt]
    # Strip parenthetical suffixes like varchar(255)
    if "(" in dt:
        dt = dt[:dt.index("(")]
    return sanitize_name(dt.strip())


def _key_marker(table: Table, column: Column) -> str:
    in_pk = table.primary_key is not None and column.name in table.primary_key.column_names
    in_fk = any(column.name in fk.column_names for fk in table.foreign_keys)
    # Mermaid allows one key marker, extra markers go in the comment
    if in_pk and in_fk:
        return ' PK "FK"'
    if in_pk:
        return " PK"
    if in_fk:
        return " FK"
    return ""


def _relationship(table: Table, fk: ForeignKey) -> str:
    # Many rows on the FK side point at one referenced row
    return (
        f"    {sanitize_name(table.name)} }}o--|| "
        f'{sanitize_name(fk.referenced_table)} : "{sanitize_name(fk.name)}"'
    )


def _schema_lines(schema: Schema) -> List[str]:
    lines = []
    tables = [schema.tables[name] for name in sorted(schema.tables)]

    for table in tables:
        lines.append(f"    {sanitize_name(table.name)} {{")
        for column in table.ordered_columns():
            lines.append(
                f"        {simplify_data_type(column.data_type)} "
                f"{sanitize_name(column.name)}{_key_marker(table, column)}"
            )
        lines.append("    }")

    seen = set()
    for table in tables:
        for fk in table.foreign_keys:
            rel = _relationship(table, fk)
            if rel not in seen:
                seen.add(rel)
                lines.append(rel)
    return lines


def generate_mermaid_erd(database: Database) -> str:
    """Generate a Mermaid erDiagram for every table in the database."""
    lines = ["erDiagram"]
    for name in sorted(database.schemas):
        lines.extend(_schema_lines(database.schemas[name]))
    return "\n".join(lines) + "\n"


class MermaidReportWriter(ReportWriter):
    """Writes tables, key columns and foreign keys as a Mermaid ERD."""

    report_keys = ["mermaid"]
    file_extension = "mmd"
    report_name = "Mermaid ERD"

    def render(self, database: Database) -> str:
        return generate_mermaid_erd(database)
