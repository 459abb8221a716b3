"""PostgreSQL database adapter."""

import logging
import re
from typing import Dict, List, Optional

from ..config import settings
from ..errors import ConnectionError
from .base import ConstraintScan, DatabaseAdapter
from .dialects import PostgresDialect
from .models import (
    Column,
    Constraint,
    ConstraintType,
    ForeignKey,
    Function,
    FunctionParameter,
    Index,
    PrimaryKey,
    Procedure,
    Schema,
    Sequence,
    Table,
    Trigger,
    View,
)

logger = logging.getLogger(__name__)


CURRENT_DATABASE_SQL = "SELECT current_database()"

SCHEMAS_SQL = """
    SELECT schema_name, schema_owner
    FROM information_schema.schemata
    WHERE schema_name NOT IN ('pg_catalog', 'information_schema', 'pg_toast')
    ORDER BY schema_name
"""

TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT
        column_name,
        data_type,
        is_nullable,
        column_default,
        ordinal_position,
        character_maximum_length,
        numeric_precision,
        numeric_scale
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

PRIMARY_KEY_SQL = """
    SELECT tc.constraint_name, kcu.column_name
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON tc.constraint_name = kcu.constraint_name
        AND tc.table_schema = kcu.table_schema
        AND tc.table_name = kcu.table_name
    WHERE tc.constraint_type = 'PRIMARY KEY'
        AND tc.table_schema = %s
        AND tc.table_name = %s
    ORDER BY kcu.ordinal_position
"""

INDEXES_SQL = """
    SELECT
        i.relname AS index_name,
        am.amname AS index_type,
        ix.indisunique AS is_unique,
        ix.indisprimary AS is_primary,
        a.attname AS column_name
    FROM pg_index ix
    JOIN pg_class t ON t.oid = ix.indrelid
    JOIN pg_class i ON i.oid = ix.indexrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    JOIN pg_am am ON am.oid = i.relam
    JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
    WHERE n.nspname = %s AND t.relname = %s
    ORDER BY i.relname, array_position(ix.indkey::int2[], a.attnum)
"""

# conkey and confkey are parallel arrays, unnested together to keep pairs aligned
FOREIGN_KEYS_SQL = """
    SELECT
        c.conname AS constraint_name,
        a.attname AS column_name,
        nf.nspname AS ref_schema,
        clf.relname AS ref_table,
        af.attname AS ref_column,
        c.confdeltype AS delete_code,
        c.confupdtype AS update_code
    FROM pg_constraint c
    JOIN pg_class cl ON cl.oid = c.conrelid
    JOIN pg_namespace n ON n.oid = cl.relnamespace
    JOIN pg_class clf ON clf.oid = c.confrelid
    JOIN pg_namespace nf ON nf.oid = clf.relnamespace
    CROSS JOIN LATERAL unnest(c.conkey, c.confkey)
        WITH ORDINALITY AS k(attnum, ref_attnum, position)
    JOIN pg_attribute a ON a.attrelid = c.conrelid AND a.attnum = k.attnum
    JOIN pg_attribute af ON af.attrelid = c.confrelid AND af.attnum = k.ref_attnum
    WHERE c.contype = 'f'
        AND n.nspname = %s
        AND cl.relname = %s
    ORDER BY c.conname, k.position
"""

CONSTRAINTS_SQL = """
    SELECT
        c.conname AS constraint_name,
        c.contype AS constraint_code,
        pg_get_constraintdef(c.oid) AS definition,
        COALESCE(
            (SELECT array_agg(a.attname::text ORDER BY array_position(c.conkey, a.attnum))
             FROM pg_attribute a
             WHERE a.attrelid = c.conrelid AND a.attnum = ANY(c.conkey)),
            ARRAY[]::text[]
        ) AS column_names
    FROM pg_constraint c
    JOIN pg_class cl ON cl.oid = c.conrelid
    JOIN pg_namespace n ON n.oid = cl.relnamespace
    WHERE c.contype IN ('c', 'u', 'n')
        AND n.nspname = %s
        AND cl.relname = %s
    ORDER BY c.conname
"""

VIEWS_SQL = """
    SELECT table_name, view_definition
    FROM information_schema.views
    WHERE table_schema = %s
    ORDER BY table_name
"""

VIEW_COLUMNS_SQL = """
    SELECT c.table_name, c.column_name, c.data_type, c.is_nullable, c.ordinal_position
    FROM information_schema.columns c
    JOIN information_schema.views v
        ON v.table_schema = c.table_schema AND v.table_name = c.table_name
    WHERE c.table_schema = %s
    ORDER BY c.table_name, c.ordinal_position
"""

SEQUENCES_SQL = """
    SELECT
        sequencename,
        start_value,
        increment_by,
        min_value,
        max_value,
        cache_size,
        cycle
    FROM pg_sequences
    WHERE schemaname = %s
    ORDER BY sequencename
"""

FUNCTIONS_SQL = """
    SELECT
        p.proname AS function_name,
        pg_get_functiondef(p.oid) AS definition,
        pg_get_function_result(p.oid) AS return_type,
        l.lanname AS language
    FROM pg_proc p
    JOIN pg_namespace n ON n.oid = p.pronamespace
    JOIN pg_language l ON l.oid = p.prolang
    WHERE n.nspname = %s AND p.prokind = 'f'
    ORDER BY p.proname
"""

PROCEDURES_SQL = """
    SELECT
        p.proname AS procedure_name,
        pg_get_functiondef(p.oid) AS definition,
        l.lanname AS language
    FROM pg_proc p
    JOIN pg_namespace n ON n.oid = p.pronamespace
    JOIN pg_language l ON l.oid = p.prolang
    WHERE n.nspname = %s AND p.prokind = 'p'
    ORDER BY p.proname
"""

ROUTINE_PARAMETERS_SQL = """
    SELECT
        r.routine_name,
        r.specific_name,
        p.parameter_name,
        p.data_type,
        p.parameter_mode,
        p.ordinal_position
    FROM information_schema.routines r
    JOIN information_schema.parameters p
        ON p.specific_schema = r.specific_schema
        AND p.specific_name = r.specific_name
    WHERE r.specific_schema = %s
    ORDER BY r.routine_name, r.specific_name, p.ordinal_position
"""

TRIGGERS_SQL = """
    SELECT
        trigger_name,
        action_timing,
        event_manipulation,
        action_statement,
        action_orientation
    FROM information_schema.triggers
    WHERE trigger_schema = %s AND event_object_table = %s
    ORDER BY trigger_name, event_manipulation
"""

_TEMP_SCHEMA_PREFIXES = ("pg_temp_", "pg_toast_temp_")

_EXECUTE_RE = re.compile(
    r'EXECUTE\s+(?:FUNCTION|PROCEDURE)\s+([\w$."]+)\s*\(',
    re.IGNORECASE,
)


def _executed_function(action_statement: str):
    """Split the routine named by a trigger's EXECUTE clause into (schema, name)."""
    match = _EXECUTE_RE.search(action_statement or "")
    if not match:
        return None, None
    parts = [part.strip('"') for part in match.group(1).split(".")]
    if len(parts) == 1:
        return None, parts[0]
    return parts[-2], parts[-1]


class PostgresAdapter(DatabaseAdapter):
    """Adapter for mapping PostgreSQL catalogs."""

    NAME = "PostgreSQL"
    VERSION = "v1"

    EXCLUDED_SCHEMAS = {'pg_catalog', 'information_schema', 'pg_toast'}
    SUPPORTS_SEQUENCES = True

    def __init__(self, connect_timeout: Optional[int] = None):
        """Initialize PostgreSQL adapter.

        Args:
            connect_timeout: Seconds to wait for the server (default from settings)
        """
        super().__init__()
        self.connect_timeout = connect_timeout or settings.connect_timeout
        self.dialect = PostgresDialect()

    @staticmethod
    def _driver():
        try:
            import psycopg2
            import psycopg2.extensions
        except ImportError:
            raise ImportError(
                "psycopg2 is required for PostgreSQL connections. "
                "Install it with: pip install psycopg2-binary"
            )
        return psycopg2

    def is_compatible(self, connection_string: str) -> bool:
        """Accept libpq URIs and key=value DSNs, reject MySQL-driver DSNs."""
        if not connection_string or not connection_string.strip():
            return False
        if "@tcp(" in connection_string:
            return False

        psycopg2 = self._driver()
        try:
            psycopg2.extensions.parse_dsn(connection_string)
        except psycopg2.ProgrammingError:
            return False
        return True

    def connect(self, connection_string: str) -> None:
        """Connect to PostgreSQL."""
        psycopg2 = self._driver()
        try:
            conn = psycopg2.connect(connection_string, connect_timeout=self.connect_timeout)
        except psycopg2.Error as e:
            raise ConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                details={"adapter": self.unique_signature},
            ) from e

        # A failed catalog query must not abort the ones after it
        conn.autocommit = True
        self._connection = conn
        logger.info("Connected adapter %s", self.unique_signature)

    def is_connected(self) -> bool:
        return self._connection is not None and not self._connection.closed

    def get_database_name(self) -> str:
        row = self._fetch_one(CURRENT_DATABASE_SQL)
        if row is None or not row[0]:
            raise ValueError("current_database() returned no name")
        return row[0]

    def _is_system_schema(self, name: str) -> bool:
        return name in self.EXCLUDED_SCHEMAS or name.startswith(_TEMP_SCHEMA_PREFIXES)

    def map_schemas(self) -> List[Schema]:
        schemas = []
        for name, owner in self._fetch_all(SCHEMAS_SQL):
            if self._is_system_schema(name):
                continue
            schemas.append(Schema(name=name, owner=owner or ""))
        return schemas

    def map_tables(self, schema: Schema) -> List[Table]:
        rows = self._fetch_all(TABLES_SQL, (schema.name,))
        return [Table(name=row[0]) for row in rows]

    def map_columns(self, schema: Schema, table: Table) -> List[Column]:
        columns = []
        for row in self._fetch_all(COLUMNS_SQL, (schema.name, table.name)):
            (name, data_type, is_nullable, default, position,
             char_length, precision, scale) = row
            columns.append(Column(
                name=name,
                data_type=data_type,
                is_nullable=self.dialect.to_bool(is_nullable),
                default_value=default,
                ordinal_position=position,
                char_max_length=char_length,
                numeric_precision=precision,
                numeric_scale=scale,
            ))
        return columns

    def map_primary_key(self, schema: Schema, table: Table) -> Optional[PrimaryKey]:
        pk = None
        for constraint_name, column_name in self._fetch_all(PRIMARY_KEY_SQL, (schema.name, table.name)):
            if pk is None:
                pk = PrimaryKey(name=constraint_name)
            column = table.get_column(column_name)
            if column is not None:
                pk.add_column(column)
        return pk

    def map_indexes(self, schema: Schema, table: Table) -> List[Index]:
        indexes: Dict[str, Index] = {}
        for index_name, index_type, is_unique, is_primary, column_name in self._fetch_all(
            INDEXES_SQL, (schema.name, table.name)
        ):
            index = indexes.get(index_name)
            if index is None:
                index = Index(
                    name=index_name,
                    is_unique=self.dialect.to_bool(is_unique),
                    is_primary=self.dialect.to_bool(is_primary),
                    index_type=self.dialect.index_type(index_type),
                )
                indexes[index_name] = index
            column = table.get_column(column_name)
            if column is not None:
                index.add_column(column)
        return list(indexes.values())

    def map_foreign_keys(self, schema: Schema, table: Table) -> List[ForeignKey]:
        foreign_keys: Dict[str, ForeignKey] = {}
        for row in self._fetch_all(FOREIGN_KEYS_SQL, (schema.name, table.name)):
            name, column_name, ref_schema, ref_table, ref_column, delete_code, update_code = row
            fk = foreign_keys.get(name)
            if fk is None:
                fk = ForeignKey(
                    name=name,
                    referenced_table=ref_table,
                    referenced_schema=ref_schema,
                    on_delete=self.dialect.referential_action(delete_code),
                    on_update=self.dialect.referential_action(update_code),
                )
                foreign_keys[name] = fk
            column = table.get_column(column_name)
            if column is not None:
                fk.add_column(column)
            fk.add_referenced_column(Column.placeholder(ref_column))
        return list(foreign_keys.values())

    def constraint_scans(self) -> List[ConstraintScan]:
        return [("constraints", self.map_constraints)]

    def map_constraints(self, schema: Schema, table: Table) -> List[Constraint]:
        constraints = []
        for name, code, definition, column_names in self._fetch_all(
            CONSTRAINTS_SQL, (schema.name, table.name)
        ):
            constraint_type = self.dialect.constraint_type(code)
            if constraint_type is None:
                continue
            constraint = Constraint(name=name, constraint_type=constraint_type)
            if constraint_type == ConstraintType.CHECK:
                constraint.check_expression = definition or ""
            for column_name in column_names or []:
                column = table.get_column(column_name)
                if column is not None:
                    constraint.add_column(column)
            constraints.append(constraint)
        return constraints

    def map_views(self, schema: Schema) -> List[View]:
        views = {
            name: View(name=name, definition=definition or "")
            for name, definition in self._fetch_all(VIEWS_SQL, (schema.name,))
        }
        if not views:
            return []

        for view_name, name, data_type, is_nullable, position in self._fetch_all(
            VIEW_COLUMNS_SQL, (schema.name,)
        ):
            view = views.get(view_name)
            if view is None:
                continue
            view.add_column(Column(
                name=name,
                data_type=data_type,
                is_nullable=self.dialect.to_bool(is_nullable),
                ordinal_position=position,
            ))
        return list(views.values())

    def map_sequences(self, schema: Schema) -> List[Sequence]:
        sequences = []
        for name, start, increment, min_value, max_value, cache, cycle in self._fetch_all(
            SEQUENCES_SQL, (schema.name,)
        ):
            sequences.append(Sequence(
                name=name,
                start_value=start,
                increment=increment,
                min_value=min_value,
                max_value=max_value,
                cache=cache,
                cycle=self.dialect.to_bool(cycle),
            ))
        return sequences

    def _routine_parameters(self, schema: Schema) -> Dict[str, List[FunctionParameter]]:
        """Parameters per routine name.

        Overloads share a name; only the first overload's parameters are kept.
        """
        parameters: Dict[str, List[FunctionParameter]] = {}
        owner: Dict[str, str] = {}
        for routine_name, specific_name, name, data_type, mode, position in self._fetch_all(
            ROUTINE_PARAMETERS_SQL, (schema.name,)
        ):
            if owner.setdefault(routine_name, specific_name) != specific_name:
                continue
            parameters.setdefault(routine_name, []).append(FunctionParameter(
                name=name or f"${position}",
                data_type=data_type or "",
                mode=self.dialect.parameter_mode(mode),
            ))
        return parameters

    def map_functions(self, schema: Schema) -> List[Function]:
        rows = self._fetch_all(FUNCTIONS_SQL, (schema.name,))
        if not rows:
            return []
        parameters = self._routine_parameters(schema)

        functions = []
        for name, definition, return_type, language in rows:
            fn = Function(
                name=name,
                definition=definition or "",
                return_type=return_type or "",
                language=language,
            )
            for parameter in parameters.get(name, []):
                fn.add_parameter(parameter)
            functions.append(fn)
        return functions

    def map_procedures(self, schema: Schema) -> List[Procedure]:
        rows = self._fetch_all(PROCEDURES_SQL, (schema.name,))
        if not rows:
            return []
        parameters = self._routine_parameters(schema)

        procedures = []
        for name, definition, language in rows:
            proc = Procedure(name=name, definition=definition or "", language=language)
            for parameter in parameters.get(name, []):
                proc.add_parameter(parameter)
            procedures.append(proc)
        return procedures

    def map_triggers(self, schema: Schema, table: Table) -> List[Trigger]:
        triggers: Dict[str, Trigger] = {}
        for name, timing, event, statement, orientation in self._fetch_all(
            TRIGGERS_SQL, (schema.name, table.name)
        ):
            trigger = triggers.get(name)
            if trigger is None:
                trigger = Trigger(
                    name=name,
                    definition=statement or "",
                    timing=self.dialect.trigger_timing(timing),
                    for_each=self.dialect.for_each(orientation),
                )
                fn_schema, fn_name = _executed_function(statement)
                if fn_name and fn_schema in (None, schema.name):
                    trigger.function = schema.functions.get(fn_name)
                triggers[name] = trigger
            trigger.add_event(self.dialect.trigger_event(event))
        return list(triggers.values())
