import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import StaticPool, event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from socialgraph.database import get_db  # noqa: E402
from socialgraph.dependencies import get_friendship_manager  # noqa: E402
from socialgraph.main import app  # noqa: E402
from socialgraph.models import Base  # noqa: E402
from socialgraph.models.user import User  # noqa: E402
from socialgraph.services.friendship_service import FriendshipManager  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list[tuple] = []

    def zremrangebyscore(self, key: str, low: float, high: float):
        self._ops.append(("zremrangebyscore", key, low, high))

    def zadd(self, key: str, mapping: dict[str, float]):
        self._ops.append(("zadd", key, mapping))

    def zcard(self, key: str):
        self._ops.append(("zcard", key))

    def expire(self, key: str, seconds: int):
        self._ops.append(("expire", key, seconds))

    async def execute(self) -> list:
        results = []
        for name, key, *args in self._ops:
            zset = self._redis._zsets.setdefault(key, {})
            if name == "zremrangebyscore":
                low, high = args
                stale = [m for m, score in zset.items() if low <= score <= high]
                for member in stale:
                    del zset[member]
                results.append(len(stale))
            elif name == "zadd":
                zset.update(args[0])
                results.append(len(args[0]))
            elif name == "zcard":
                results.append(len(zset))
            else:
                self._redis._ttls[key] = args[0]
                results.append(True)
        self._ops = []
        return results


class FakeRedis:
    """In-memory Redis mock for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._zsets: dict[str, dict[str, float]] = {}
        self._ttls: dict[str, int] = {}

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self._store[key] = str(value)
        if ex:
            self._ttls[key] = ex

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def manager(session_factory) -> FriendshipManager:
    return FriendshipManager(session_factory)


async def _make_user(db_session: AsyncSession, user_id: int, username: str) -> User:
    user = User(
        id=user_id,
        username=username,
        email=f"{username}@example.com",
        password_hash="not-a-real-hash",
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def alice(db_session: AsyncSession) -> User:
    return await _make_user(db_session, 1, "alice")


@pytest.fixture
async def bob(db_session: AsyncSession) -> User:
    return await _make_user(db_session, 2, "bob")


@pytest.fixture
async def carol(db_session: AsyncSession) -> User:
    return await _make_user(db_session, 3, "carol")


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_friendship_manager] = lambda: FriendshipManager(session_factory)
    app.state.redis = FakeRedis()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
