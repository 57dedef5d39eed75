import asyncio
import os
import tempfile

import pytest

_DB_DIR = tempfile.mkdtemp(prefix="splitledger-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from splitledger.db.session import Base, get_db
from splitledger.main import app
from splitledger.models import user, group, group_member, expense, expense_split, settlement_history  # noqa: F401


@pytest.fixture
def client():
    """API client on a fresh SQLite database."""
    engine = create_async_engine(os.environ["DATABASE_URL"], poolclass=NullPool)
    session_factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async def reset_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(reset_schema())

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # not entered as a context manager, so the startup DB wait never runs
    yield TestClient(app)

    app.dependency_overrides.clear()
    asyncio.run(engine.dispose())


@pytest.fixture
def make_user(client):
    def _make(name):
        res = client.post(
            "/api/v1/users/",
            json={"name": name, "email": f"{name.lower()}@example.com"},
        )
        assert res.status_code == 201, res.text
        return res.json()["id"]

    return _make


def as_user(user_id):
    return {"X-User-Id": str(user_id)}
