from fastapi import Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.connection import get_db
from app.exceptions.errors import StorageUnavailable


async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness probe that also pings the database."""
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        raise StorageUnavailable()
    return {"status": "ok"}
