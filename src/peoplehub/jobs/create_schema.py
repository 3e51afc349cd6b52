"""Create the application tables.

Run via: python -m peoplehub.jobs.create_schema

Emits ``CREATE TABLE IF NOT EXISTS`` for every model in dependency order.
This is not a migration tool; it only bootstraps an empty database.
"""

import asyncio
import os

import structlog
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from peoplehub.adapters.db.app_db import AppDatabase
from peoplehub.logging import configure_logging
from peoplehub.models import BaseModel

logger = structlog.get_logger()


def schema_statements() -> list[str]:
    """DDL for all tables and their indexes, parents first."""
    dialect = postgresql.dialect()
    statements = []
    for table in BaseModel.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda i: i.name or ""):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements


async def main() -> None:
    """Create all tables."""
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("database_url_not_set")
        return

    db = AppDatabase(database_url, min_size=1, max_size=1)
    await db.connect()
    try:
        async with db.transaction() as conn:
            for statement in schema_statements():
                await conn.execute(statement)
        logger.info("schema_created", tables=len(BaseModel.metadata.sorted_tables))
    finally:
        await db.close()


if __name__ == "__main__":
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    asyncio.run(main())
