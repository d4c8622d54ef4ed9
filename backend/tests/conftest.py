import fnmatch
import os

# Settings and loggers read the environment at import time
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_TO_FILE", "0")
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from carbonledger.core.database import get_db, init_db
from carbonledger.core.security import create_access_token, hash_password
from carbonledger.dependencies.redis_cache import RedisCache, get_dashboard_cache
from carbonledger.main import create_app
from carbonledger.models.user import User, UserRole
from carbonledger.services.report_worker import ReportWorker, get_report_worker

TEST_PASSWORD = "testpassword"


@pytest.fixture
async def engine(tmp_path):
    # File-backed so request sessions and worker sessions see each other's commits
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", poolclass=NullPool)
    await init_db(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def report_worker(session_factory):
    worker = ReportWorker(session_factory=session_factory, concurrency=2, timeout_seconds=10)
    await worker.start()
    yield worker
    await worker.stop()


@pytest.fixture
def app(session_factory, report_worker):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dashboard_cache] = lambda: None
    app.dependency_overrides[get_report_worker] = lambda: report_worker
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def _create_user(db: AsyncSession, email: str, role: UserRole = UserRole.user, company: str = "Acme Logistics") -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        company=company,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def test_user1(db):
    return await _create_user(db, "alice@acme.io")


@pytest.fixture
async def test_user2(db):
    return await _create_user(db, "bob@globex.io", company="Globex")


@pytest.fixture
async def manager_user(db):
    return await _create_user(db, "manager@acme.io", role=UserRole.manager)


@pytest.fixture
async def admin_user(db):
    return await _create_user(db, "admin@acme.io", role=UserRole.admin)


@pytest.fixture
def auth_headers():
    def build(user: User) -> dict:
        token = create_access_token({"sub": str(user.id)})
        return {"Authorization": f"Bearer {token}"}
    return build


def entry(co2e: float, source: str = "Fleet", category: str = "Mobile combustion") -> dict:
    return {
        "source": source,
        "category": category,
        "amount": co2e,
        "unit": "kg",
        "co2e_amount": co2e,
        "activity_data": co2e / 2.5,
        "emission_factor": 2.5,
        "emission_factor_source": "DEFRA",
    }


@pytest.fixture
def emission_payload():
    def build(scope: int = 1, year: int = 2024, amounts=(100.0, 50.0), status: str = "draft", **period) -> dict:
        return {
            "scope": scope,
            "reporting_period": {"year": year, **period},
            "entries": [entry(amount) for amount in amounts],
            "status": status,
        }
    return build


@pytest.fixture
def supplier_payload():
    def build(name: str = "Nordic Freight AB", scope1: float = 10.0, scope2: float = 20.0, scope3: float = 5.0,
              relationship_type: str = "Transportation", **extra) -> dict:
        payload = {
            "company": {"name": name},
            "relationship": {"type": relationship_type, "tier": 1},
            "emissions_data": {"scope1": scope1, "scope2": scope2, "scope3": scope3},
        }
        payload.update(extra)
        return payload
    return build


class MemoryRedis:
    """In-process stand-in for the handful of redis.asyncio calls the cache makes."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

    async def scan(self, cursor=0, match=None, count=None):
        keys = [key for key in self.store if match is None or fnmatch.fnmatchcase(key, match)]
        return 0, keys


class UnreachableRedis:
    async def get(self, key):
        raise RedisConnectionError("connection refused")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("connection refused")

    async def delete(self, *keys):
        raise RedisConnectionError("connection refused")

    async def scan(self, cursor=0, match=None, count=None):
        raise RedisConnectionError("connection refused")


@pytest.fixture
def memory_redis():
    return MemoryRedis()


@pytest.fixture
def memory_cache(memory_redis):
    return RedisCache[dict]("dashboard", client=memory_redis)


@pytest.fixture
def unreachable_cache():
    return RedisCache[dict]("dashboard", client=UnreachableRedis())
