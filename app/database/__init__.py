"""
Database package for the application.
"""

from .base import Base
from .connection import AsyncSessionLocal, engine, get_db, build_engine
from .locks import acquire_user_ingestion_lock

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "engine",
    "get_db",
    "build_engine",
    "acquire_user_ingestion_lock",
]
