# (c) Copyright Datacraft, 2026
"""The initial migration creates the schema the ORM models describe."""
import importlib

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations

from registrar.core import orm  # noqa: F401
from registrar.core.db.base import Base

migration = importlib.import_module(
    "registrar.core.alembic.versions.rg_0001_letters_routing_audit"
)


def test_initial_migration_matches_models():
    engine = sa.create_engine("sqlite://")

    with engine.begin() as conn:
        with Operations.context(MigrationContext.configure(conn)):
            migration.upgrade()

        inspector = sa.inspect(conn)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for name, table in Base.metadata.tables.items():
            columns = {c["name"] for c in inspector.get_columns(name)}
            assert columns == {c.name for c in table.columns}, name

        with Operations.context(MigrationContext.configure(conn)):
            migration.downgrade()

        assert sa.inspect(conn).get_table_names() == []
