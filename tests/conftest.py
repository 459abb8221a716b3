"""Shared pytest fixtures for norman tests."""

import pytest

from norman.database.models import (
    Column,
    Database,
    ForeignKey,
    PrimaryKey,
    ReferentialAction,
    Schema,
    Table,
)
from norman.logging.run_db import RunDatabase

from .fixtures import create_mysql_catalog, create_postgres_catalog


@pytest.fixture
def sample_database():
    """Create a sample Database model with users and orders tables."""
    db = Database(name="shop")
    schema = Schema(name="public", owner="postgres")
    db.add_schema(schema)

    users = Table(name="users")
    schema.add_table(users)
    users.add_column(Column(name="id", data_type="integer", is_nullable=False, ordinal_position=1))
    users.add_column(Column(name="email", data_type="character varying(255)", is_nullable=False, ordinal_position=2))
    users.add_column(Column(name="name", data_type="text", ordinal_position=3))
    pk = PrimaryKey(name="users_pkey")
    pk.add_column(users.get_column("id"))
    users.set_primary_key(pk)

    orders = Table(name="orders")
    schema.add_table(orders)
    orders.add_column(Column(name="id", data_type="integer", is_nullable=False, ordinal_position=1))
    orders.add_column(Column(name="user_id", data_type="integer", is_nullable=False, ordinal_position=2))
    orders.add_column(Column(name="total", data_type="numeric", is_nullable=False, ordinal_position=3))
    pk = PrimaryKey(name="orders_pkey")
    pk.add_column(orders.get_column("id"))
    orders.set_primary_key(pk)

    fk = ForeignKey(
        name="orders_user_id_fkey",
        referenced_table="users",
        referenced_schema="public",
        on_delete=ReferentialAction.CASCADE,
    )
    fk.add_column(orders.get_column("user_id"))
    fk.add_referenced_column(Column.placeholder("id"))
    orders.add_foreign_key(fk)
    return db


@pytest.fixture
def postgres_catalog():
    """Mock psycopg2 connection answering catalog queries for a shop database."""
    return create_postgres_catalog()


@pytest.fixture
def mysql_catalog():
    """Mock PyMySQL connection answering catalog queries for a shop database."""
    return create_mysql_catalog()


@pytest.fixture
def run_db(tmp_path):
    """Run log database in a temporary directory."""
    db = RunDatabase(str(tmp_path / "runs.db"))
    yield db
    db.close()
