from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import AsyncAdaptedQueuePool
from contextlib import asynccontextmanager
from app.core.config import settings
from app.core.logger import get_logger

logger = get_logger("database")


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    """Take the SQLite write lock at BEGIN so concurrent ingestions serialize instead of deadlocking."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        # stop the driver from emitting its own BEGIN (also makes SAVEPOINT work)
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> AsyncEngine:
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            echo=False,
            connect_args={"timeout": 30},
            future=True
        )
        _install_sqlite_transaction_hooks(engine)
        return engine

    # Determine SSL requirement based on environment
    ssl_config = {} if settings.IS_DEVELOPMENT else {"ssl": "require"}

    return create_async_engine(
        database_url,
        echo=False,
        connect_args={
            **ssl_config,
            "server_settings": {
                "application_name": "usage_ledger_backend",
                "jit": "off",
                # an ingestion stuck past its deadline is rolled back server-side too
                "idle_in_transaction_session_timeout": str(int(settings.INGEST_TIMEOUT_SECONDS * 1000 * 3)),
            },
            "command_timeout": 30,
        },
        poolclass=AsyncAdaptedQueuePool,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        future=True
    )


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_db():
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def async_session():
    """Context manager for database session outside of request handling."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
