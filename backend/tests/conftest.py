"""Pytest fixtures for testing."""
import inspect
import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

# Settings are read at import time by api.main; set them before any app import.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("REDIS_ENABLED", "false")

import fakeredis  # noqa: E402
import pytest  # noqa: E402
import socketio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from cache.account_cache import AccountCache  # noqa: E402
from cache.channel_cache import ChannelCache  # noqa: E402
from cache.server_member_cache import ServerMemberCache  # noqa: E402
from core.config import Settings  # noqa: E402
from core.redis import RedisClient, set_redis_client  # noqa: E402
from core.tokens import create_token  # noqa: E402
from models import Account, Base, Channel, ChannelType, Server, ServerMember, User  # noqa: E402
from realtime.broadcaster import Broadcaster  # noqa: E402
from services.channel_service import ChannelService  # noqa: E402
from services.permissions import ChannelPermission  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's .env file."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret="test-secret",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite engine per test.

    StaticPool keeps the single connection alive so every session sees the
    same in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create an async session for a test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def redis_client() -> AsyncGenerator[RedisClient]:
    """
    RedisClient backed by an isolated fakeredis server.

    Also installed as the global client so code using get_redis_client() sees it.
    """
    client = RedisClient(url="redis://fake", enabled=True)
    client.attach(fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer()))
    set_redis_client(client)

    yield client

    await client.close()
    set_redis_client(None)


@pytest.fixture
def sio() -> socketio.AsyncServer:
    """
    Real Socket.IO server with emit recorded instead of sent.

    Room membership goes through the real manager; no client is connected at
    the transport level, so emit is replaced with an AsyncMock.
    """
    server = socketio.AsyncServer(async_mode="asgi")
    server.emit = AsyncMock()
    return server


@pytest.fixture
def broadcaster(sio: socketio.AsyncServer) -> Broadcaster:
    """Broadcaster over the test Socket.IO server."""
    return Broadcaster(sio)


@pytest.fixture
def connect_socket(
    sio: socketio.AsyncServer,
) -> Callable[..., Awaitable[str]]:
    """
    Register a fake connection for a user and return its sid.

    The connection is placed in the user's room plus any extra rooms given.
    """

    async def _connect(user_id: UUID | str, *rooms: UUID | str) -> str:
        sid = sio.manager.connect(uuid4().hex, "/")
        if inspect.isawaitable(sid):
            sid = await sid
        for room in (user_id, *rooms):
            await sio.enter_room(sid, str(room))
        return sid

    return _connect


@pytest.fixture
def account_cache(redis_client: RedisClient) -> AccountCache:
    """Account cache over the fake Redis."""
    return AccountCache(redis_client)


@pytest.fixture
def channel_cache(redis_client: RedisClient) -> ChannelCache:
    """Channel cache over the fake Redis."""
    return ChannelCache(redis_client)


@pytest.fixture
def server_member_cache(redis_client: RedisClient) -> ServerMemberCache:
    """Server member cache over the fake Redis."""
    return ServerMemberCache(redis_client)


@pytest.fixture
def channel_service(
    channel_cache: ChannelCache,
    server_member_cache: ServerMemberCache,
    broadcaster: Broadcaster,
) -> ChannelService:
    """Channel service wired to the test caches and broadcaster."""
    return ChannelService(channel_cache, server_member_cache, broadcaster)


@pytest.fixture
def make_account(db_session: AsyncSession) -> Callable[..., Awaitable[Account]]:
    """Factory creating a user profile with its account."""

    async def _make(username: str, tag: str = "0001", avatar: str | None = None) -> Account:
        user = User(username=username, tag=tag, avatar=avatar)
        account = Account(user=user, email=f"{username.lower()}@example.com")
        db_session.add(account)
        await db_session.flush()
        await db_session.commit()
        return account

    return _make


@pytest.fixture
def make_server(db_session: AsyncSession) -> Callable[..., Awaitable[Server]]:
    """
    Factory creating a server owned by a user.

    The server gets a public default channel and the owner plus any extra
    members are added as server members.
    """

    async def _make(owner_id: UUID, *member_ids: UUID, name: str = "Test Server") -> Server:
        server = Server(name=name, created_by=owner_id)
        db_session.add(server)
        await db_session.flush()

        default_channel = Channel(
            name="General",
            type=ChannelType.SERVER_TEXT,
            permissions=int(ChannelPermission.SEND_MESSAGE),
            server_id=server.id,
            created_by=owner_id,
        )
        db_session.add(default_channel)
        await db_session.flush()
        server.default_channel_id = default_channel.id

        for user_id in (owner_id, *member_ids):
            db_session.add(ServerMember(server_id=server.id, user_id=user_id, role_ids=[]))
        await db_session.flush()
        await db_session.commit()
        return server

    return _make


@pytest.fixture
def make_channel(db_session: AsyncSession) -> Callable[..., Awaitable[Channel]]:
    """Factory creating a channel row directly (bypassing the service)."""

    async def _make(
        server: Server | None,
        created_by: UUID,
        name: str | None = "channel",
        permissions: int = int(ChannelPermission.SEND_MESSAGE),
        recipient_id: UUID | None = None,
    ) -> Channel:
        channel = Channel(
            name=name,
            type=ChannelType.SERVER_TEXT if server else ChannelType.DM_TEXT,
            permissions=permissions,
            server_id=server.id if server else None,
            created_by=created_by,
            recipient_id=recipient_id,
        )
        db_session.add(channel)
        await db_session.flush()
        await db_session.commit()
        return channel

    return _make


@pytest.fixture
def token_for(settings: Settings) -> Callable[[Account], str]:
    """Issue a valid token for an account at its current password version."""

    def _token(account: Account) -> str:
        return create_token(str(account.id), account.password_version, settings)

    return _token


@pytest.fixture
async def client(
    db_session: AsyncSession,
    settings: Settings,
    account_cache: AccountCache,
    channel_cache: ChannelCache,
    server_member_cache: ServerMemberCache,
    broadcaster: Broadcaster,
    channel_service: ChannelService,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database session and service overrides."""
    from api.main import app
    from cache.account_cache import set_account_cache
    from cache.channel_cache import set_channel_cache
    from cache.server_member_cache import set_server_member_cache
    from core.config import get_settings
    from db.session import get_async_session
    from realtime.broadcaster import set_broadcaster
    from services.channel_service import set_channel_service

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_settings] = lambda: settings
    set_account_cache(account_cache)
    set_channel_cache(channel_cache)
    set_server_member_cache(server_member_cache)
    set_broadcaster(broadcaster)
    set_channel_service(channel_service)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    set_channel_service(None)
    set_broadcaster(None)
    set_server_member_cache(None)
    set_channel_cache(None)
    set_account_cache(None)
