"""Shared fixtures: a file-backed SQLite database per test, ingestion and API clients."""

import os
import tempfile

# Settings are read at import time
_scratch = tempfile.mkdtemp(prefix="usage-ledger-tests-")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_scratch, 'default.db')}")
os.environ.setdefault("LOG_DIR", os.path.join(_scratch, "logs"))
os.environ.setdefault("CLERK_SECRET_KEY", "sk_test_placeholder")

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from app.api.v1.routes import apps_router, health_router, session_router, stats_router  # noqa: E402
from app.database import Base, build_engine, get_db  # noqa: E402
from app.exceptions.errors import ApplicationException  # noqa: E402
from app.exceptions.handlers import application_exception_handler, http_exception_handler  # noqa: E402
from app.middlewares.clerk_auth import get_authenticated_user  # noqa: E402
from app.models import User  # noqa: E402
from app.services.session_ingestion_service import SessionIngestionService  # noqa: E402

from helpers import make_report  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'usage.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def _create_user(session_factory, clerk_id: str) -> User:
    async with session_factory() as db:
        user = User(clerk_id=clerk_id, email=f"{clerk_id}@example.com")
        db.add(user)
        await db.commit()
        return user


@pytest.fixture
async def user(session_factory):
    return await _create_user(session_factory, "clerk_alice")


@pytest.fixture
async def other_user(session_factory):
    return await _create_user(session_factory, "clerk_bob")


@pytest.fixture
def ingest(session_factory, user):
    """Ingest one report in its own session, as one request would."""

    async def _ingest(device, platform, app, start, end, time_zone="UTC", user_id=None, **service_kwargs):
        async with session_factory() as db:
            service = SessionIngestionService(db, **service_kwargs)
            return await service.ingest_session(make_report(
                user_id or user.id, device, platform, app, start, end, time_zone
            ))

    return _ingest


@pytest.fixture
def api_app(session_factory, user):
    """Routers and handlers without the Clerk middleware; the test user is always signed in."""
    app = FastAPI()
    for router in (health_router, session_router, stats_router, apps_router):
        app.include_router(router, prefix="/api/v1")
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    async def _get_db():
        async with session_factory() as db:
            yield db

    async def _get_user():
        return user

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_authenticated_user] = _get_user
    return app


@pytest.fixture
async def client(api_app):
    transport = httpx.ASGITransport(app=api_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http
