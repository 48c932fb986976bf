from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("INTERNAL_API_TOKEN", "internal-secret")
os.environ.setdefault("INTERNAL_API_ALLOWLIST", "127.0.0.1/32")

from collections.abc import AsyncIterator, Callable  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

import tianji.db.models  # noqa: E402,F401
from tianji.api.routes import (  # noqa: E402
    astrology,
    coins,
    health,
    internal_billing,
    subscription,
    user_profile,
)
from tianji.core.security import create_access_token  # noqa: E402
from tianji.db.models.base import Base  # noqa: E402
from tianji.main import app  # noqa: E402
from tianji.workers.tasks import retention_cleanup, subscription_expiry  # noqa: E402

SESSION_MODULES = (
    astrology,
    coins,
    health,
    internal_billing,
    subscription,
    user_profile,
    retention_cleanup,
    subscription_expiry,
)


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it explicitly.
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine, monkeypatch) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(db_engine, expire_on_commit=False)
    for module in SESSION_MODULES:
        monkeypatch.setattr(module, "SessionLocal", factory)
    return factory


@pytest.fixture
async def client(session_factory) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app, client=("127.0.0.1", 8080))
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
