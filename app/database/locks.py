"""
Per-user serialization of session ingestion.

PostgreSQL: transaction-scoped advisory lock keyed on the user id, released
on commit or rollback. SQLite: every transaction already starts with
BEGIN IMMEDIATE (see connection.py), which holds the database write lock.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import get_logger

logger = get_logger("database")


async def acquire_user_ingestion_lock(db: AsyncSession, user_id: str) -> None:
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        await db.execute(
            select(func.pg_advisory_xact_lock(func.hashtext(f"usage:{user_id}")))
        )
    elif dialect != "sqlite":
        logger.warning(f"No per-user ingestion lock for dialect '{dialect}'")
