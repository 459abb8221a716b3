"""Abstract base class for database adapters."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence as Seq, Tuple

from ..errors import CatalogScanError, MappingError, NotConnectedError
from .dialects import Dialect
from .models import (
    Column,
    Constraint,
    Database,
    ForeignKey,
    Function,
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

ConstraintScan = Tuple[str, Callable[[Schema, Table], List[Constraint]]]


@dataclass
class MappingResult:
    """Outcome of a mapping run.

    ``database`` may be incomplete when ``errors`` is not empty.
    """
    database: Database
    errors: List[CatalogScanError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class DatabaseAdapter(ABC):
    """Abstract base class for database adapters.

    Subclasses identify their engine, test and open connection strings, and
    implement one catalog scan per mapping stage. ``map_database`` runs the
    stages in a fixed order against the single connection the adapter owns.
    """

    NAME: str = ""
    VERSION: str = "v1"

    # Override in subclasses to exclude system schemas
    EXCLUDED_SCHEMAS: set = {'information_schema'}

    # Engines without sequences skip the sequence stage
    SUPPORTS_SEQUENCES: bool = False

    dialect: Dialect

    def __init__(self):
        self._connection = None

    @property
    def unique_signature(self) -> str:
        """Registry key derived from the adapter name and version."""
        return f"{self.NAME}-{self.VERSION}"

    @abstractmethod
    def is_compatible(self, connection_string: str) -> bool:
        """Check whether this adapter can handle a connection string.

        Must not open connections or have other side effects.
        """
        pass

    @abstractmethod
    def connect(self, connection_string: str) -> None:
        """Open the adapter's connection.

        Raises:
            ConnectionError: On parse, network or authentication failure
        """
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    def close(self) -> None:
        """Close the connection."""
        if self._connection is None:
            raise NotConnectedError(self.unique_signature)
        try:
            self._connection.close()
        finally:
            self._connection = None
        logger.info("Closed connection for adapter %s", self.unique_signature)

    def _require_connection(self):
        if not self.is_connected():
            raise NotConnectedError(self.unique_signature)
        return self._connection

    def _fetch_all(self, sql: str, params: Optional[Seq[Any]] = None) -> List[tuple]:
        """Execute a catalog query and return all rows."""
        cursor = self._require_connection().cursor()
        try:
            cursor.execute(sql, params)
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def _fetch_one(self, sql: str, params: Optional[Seq[Any]] = None) -> Optional[tuple]:
        cursor = self._require_connection().cursor()
        try:
            cursor.execute(sql, params)
            return cursor.fetchone()
        finally:
            cursor.close()

    # Catalog scans, one per pipeline stage

    @abstractmethod
    def get_database_name(self) -> str:
        """Resolve the name of the connected database."""
        pass

    @abstractmethod
    def map_schemas(self) -> List[Schema]:
        """Get all user schemas (excluding system schemas)."""
        pass

    @abstractmethod
    def map_tables(self, schema: Schema) -> List[Table]:
        pass

    @abstractmethod
    def map_columns(self, schema: Schema, table: Table) -> List[Column]:
        """Get the columns of a table in ordinal order."""
        pass

    @abstractmethod
    def map_primary_key(self, schema: Schema, table: Table) -> Optional[PrimaryKey]:
        pass

    @abstractmethod
    def map_indexes(self, schema: Schema, table: Table) -> List[Index]:
        pass

    @abstractmethod
    def map_foreign_keys(self, schema: Schema, table: Table) -> List[ForeignKey]:
        pass

    @abstractmethod
    def constraint_scans(self) -> List[ConstraintScan]:
        """Labelled scans making up the constraint stage.

        Each scan is an independent unit of work: one failing does not stop
        the others from attaching their constraints.
        """
        pass

    @abstractmethod
    def map_views(self, schema: Schema) -> List[View]:
        pass

    def map_sequences(self, schema: Schema) -> List[Sequence]:
        return []

    @abstractmethod
    def map_functions(self, schema: Schema) -> List[Function]:
        pass

    @abstractmethod
    def map_procedures(self, schema: Schema) -> List[Procedure]:
        pass

    @abstractmethod
    def map_triggers(self, schema: Schema, table: Table) -> List[Trigger]:
        pass

    def _attempt(
        self,
        errors: List[CatalogScanError],
        stage: str,
        scope: str,
        scan: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Run one unit of work, recording its failure instead of raising."""
        try:
            return scan(*args)
        except Exception as e:
            error = CatalogScanError(stage, scope, e)
            logger.warning("%s", error.message)
            errors.append(error)
            return None

    def map_database(self) -> MappingResult:
        """Map the connected database's catalog into a Database graph.

        Stages run in dependency order: schemas, tables, columns, primary keys,
        indexes, foreign keys, constraints, views, sequences, functions,
        procedures, triggers. A failing stage for one schema or table is
        recorded in the result's errors and mapping carries on.

        Returns:
            MappingResult with the (possibly partial) graph and scan errors

        Raises:
            NotConnectedError: If the adapter has no connection
            MappingError: If the current database name cannot be resolved
        """
        self._require_connection()

        try:
            db_name = self.get_database_name()
        except Exception as e:
            raise MappingError(
                f"Failed to get database name: {e}",
                details={"adapter": self.unique_signature},
            ) from e

        db = Database(name=db_name)
        errors: List[CatalogScanError] = []
        logger.debug("Mapping database %s with adapter %s", db_name, self.unique_signature)

        for schema in self._attempt(errors, "schemas", db_name, self.map_schemas) or []:
            db.add_schema(schema)

        schemas = list(db.schemas.values())

        for schema in schemas:
            for table in self._attempt(errors, "tables", schema.name, self.map_tables, schema) or []:
                schema.add_table(table)

        def each_table():
            for schema in schemas:
                for table in list(schema.tables.values()):
                    yield schema, table

        for schema, table in each_table():
            scope = table.fully_qualified_name
            for column in self._attempt(errors, "columns", scope, self.map_columns, schema, table) or []:
                table.add_column(column)

        for schema, table in each_table():
            scope = table.fully_qualified_name
            pk = self._attempt(errors, "primary key", scope, self.map_primary_key, schema, table)
            if pk is not None:
                table.set_primary_key(pk)

        for schema, table in each_table():
            scope = table.fully_qualified_name
            for index in self._attempt(errors, "indexes", scope, self.map_indexes, schema, table) or []:
                table.add_index(index)

        for schema, table in each_table():
            scope = table.fully_qualified_name
            for fk in self._attempt(errors, "foreign keys", scope, self.map_foreign_keys, schema, table) or []:
                table.add_foreign_key(fk)

        for schema, table in each_table():
            scope = table.fully_qualified_name
            for label, scan in self.constraint_scans():
                for constraint in self._attempt(errors, label, scope, scan, schema, table) or []:
                    table.add_constraint(constraint)

        for schema in schemas:
            for view in self._attempt(errors, "views", schema.name, self.map_views, schema) or []:
                schema.add_view(view)

        if self.SUPPORTS_SEQUENCES:
            for schema in schemas:
                for seq in self._attempt(errors, "sequences", schema.name, self.map_sequences, schema) or []:
                    schema.add_sequence(seq)

        for schema in schemas:
            for fn in self._attempt(errors, "functions", schema.name, self.map_functions, schema) or []:
                schema.add_function(fn)

        for schema in schemas:
            for proc in self._attempt(errors, "procedures", schema.name, self.map_procedures, schema) or []:
                schema.add_procedure(proc)

        for schema, table in each_table():
            scope = table.fully_qualified_name
            for trigger in self._attempt(errors, "triggers", scope, self.map_triggers, schema, table) or []:
                table.add_trigger(trigger)

        logger.debug(
            "Mapped database %s: %d schemas, %d tables, %d errors",
            db_name,
            len(db.schemas),
            len(db.all_tables()),
            len(errors),
        )
        return MappingResult(database=db, errors=errors)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.is_connected():
            self.close()
