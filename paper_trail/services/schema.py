"""Auto-schema: make sure tracked tables carry the revision counter column."""
import logging

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import Column, Integer, inspect

logger = logging.getLogger(__name__)


def has_revision_column(bind, table_name: str, column_name: str) -> bool:
    """True when the table is missing (create_all will add it) or already has the column."""
    inspector = inspect(bind)
    if not inspector.has_table(table_name):
        return True
    return column_name in {column["name"] for column in inspector.get_columns(table_name)}


def ensure_revision_column(bind, table_name: str, column_name: str) -> bool:
    """Add the counter column to an existing table. Returns True if it was added."""
    if has_revision_column(bind, table_name, column_name):
        return False

    logger.info("Adding revision column %s.%s", table_name, column_name)
    with bind.begin() as connection:
        operations = Operations(MigrationContext.configure(connection))
        operations.add_column(table_name, Column(column_name, Integer, server_default="0"))
    return True
