import os

# 앱 import 전에 테스트 환경 설정
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from expense_tracker import models  # noqa: F401
from expense_tracker.main import app
from expense_tracker.database.postgres import Base, get_session_factory
from expense_tracker.models.users import User
from expense_tracker.models.friendships import Friendship, make_pair_key
from expense_tracker.services.friendship_service import FriendshipService
from expense_tracker.utils.auth import get_password_hash, create_access_token
from expense_tracker.utils.ids import new_id


# 테스트용 인메모리 SQLite 데이터베이스 설정
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpass123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest_asyncio.fixture
async def test_engine():
    """테스트용 비동기 데이터베이스 엔진 생성"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """테스트용 데이터베이스 세션"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def friendship_service(session_factory) -> FriendshipService:
    return FriendshipService(session_factory)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def create_test_user(session: AsyncSession, username: str, display_name: str = None) -> User:
    user = User(
        id=new_id(),
        username=username,
        email=f"{username}@example.com",
        password_hash=TEST_PASSWORD_HASH,
        display_name=display_name or username.title()
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def create_test_friendship(
    session: AsyncSession,
    requester: User,
    addressee: User,
    status: str,
    created_at: datetime = None
) -> Friendship:
    created_at = created_at or datetime.utcnow()
    friendship = Friendship(
        id=new_id(),
        requester_id=requester.id,
        addressee_id=addressee.id,
        pair_key=make_pair_key(requester.id, addressee.id),
        status=status,
        created_at=created_at,
        updated_at=created_at
    )
    session.add(friendship)
    await session.commit()
    await session.refresh(friendship)
    return friendship


def auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.id}, expires_delta=timedelta(hours=1))
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user_1(test_session) -> User:
    """테스트용 사용자 1"""
    return await create_test_user(test_session, "alice", "Alice Kim")


@pytest_asyncio.fixture
async def test_user_2(test_session) -> User:
    """테스트용 사용자 2"""
    return await create_test_user(test_session, "bob", "Bob Lee")


@pytest_asyncio.fixture
async def test_user_3(test_session) -> User:
    """테스트용 사용자 3"""
    return await create_test_user(test_session, "carol", "Carol Park")


@pytest_asyncio.fixture
async def accepted_friendship(test_session, test_user_1, test_user_2) -> Friendship:
    """수락된 친구 관계 (1 -> 2)"""
    return await create_test_friendship(test_session, test_user_1, test_user_2, "accepted")


@pytest_asyncio.fixture
async def pending_friendship(test_session, test_user_1, test_user_3) -> Friendship:
    """대기 중인 친구 요청 (1 -> 3)"""
    return await create_test_friendship(test_session, test_user_1, test_user_3, "pending")


@pytest_asyncio.fixture
async def make_user(test_session):
    """사용자 생성 팩토리"""
    async def _make_user(username: str, display_name: str = None) -> User:
        return await create_test_user(test_session, username, display_name)
    return _make_user


@pytest_asyncio.fixture
async def make_friendship(test_session):
    """친구 관계 레코드 생성 팩토리"""
    async def _make_friendship(requester: User, addressee: User, status: str,
                               created_at: datetime = None) -> Friendship:
        return await create_test_friendship(test_session, requester, addressee, status, created_at)
    return _make_friendship


@pytest_asyncio.fixture
async def headers_for():
    """사용자별 Authorization 헤더 생성"""
    return auth_headers
