import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["RETENTION_SWEEP_ENABLED"] = "false"

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import DataError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from oliver.dependencies import get_db
from oliver.main import app
from oliver.models import Base, Budget, BudgetPart, User
from oliver.services.pending_operations import pending_operations
from oliver.services.query_cache import query_cache
from oliver.utils.date_utils import utc_now
from oliver.utils.jwt import create_access_token


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_process_state():
    query_cache.clear()
    pending_operations._pending.clear()
    yield
    query_cache.clear()
    pending_operations._pending.clear()


@pytest_asyncio.fixture
async def user(session):
    user = User(email="oficina@example.com", name="Oficina do Zé")
    session.add(user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def other_user(session):
    user = User(email="outra@example.com", name="Outra Oficina")
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def make_budget(session):
    async def _make_budget(owner, days_ago: int = 0, parts: int = 0, **fields):
        values = {
            "client_name": "Maria Silva",
            "device_model": "iPhone 11",
            "device_type": "Smartphone",
            "issue": "Tela quebrada",
            "total_price": 45000,
            "installments": 3,
        }
        values.update(fields)
        budget = Budget(owner_id=owner.id, created_at=utc_now() - timedelta(days=days_ago), **values)
        session.add(budget)
        await session.flush()
        for index in range(parts):
            session.add(BudgetPart(budget_id=budget.id, name=f"Peça {index + 1}", quantity=1, price=10000))
        await session.commit()
        return budget
    return _make_budget


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(user):
    token = create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def fail_next_commits(session, monkeypatch):
    """Make the next ``count`` commits of ``session`` fail like a rejected statement."""
    def _fail_next_commits(count: int = 1):
        real_commit = session.commit
        remaining = [count]

        async def commit():
            if remaining[0] > 0:
                remaining[0] -= 1
                raise DataError("COMMIT", {}, Exception("invalid input syntax for type uuid"))
            await real_commit()

        monkeypatch.setattr(session, "commit", commit)
    return _fail_next_commits
