"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import channels, health, servers, users
from cache.account_cache import AccountCache, set_account_cache
from cache.channel_cache import ChannelCache, set_channel_cache
from cache.server_member_cache import ServerMemberCache, set_server_member_cache
from core.config import get_settings
from core.log_config import configure_logging
from core.redis import CacheUnavailableError, RedisClient, set_redis_client
from db.session import get_session_factory
from realtime.broadcaster import Broadcaster, set_broadcaster
from realtime.handlers import register_handlers
from services.channel_service import ChannelService, set_channel_service

logger = logging.getLogger(__name__)

app_settings = get_settings()

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=app_settings.cors_origins,
)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    settings = get_settings()
    configure_logging(settings)

    # Startup: Connect to Redis
    redis_client = RedisClient(
        url=settings.redis_url,
        enabled=settings.redis_enabled,
        pool_size=settings.redis_pool_size,
    )
    await redis_client.connect()
    set_redis_client(redis_client)

    # Startup: Initialize caches, broadcaster and channel service
    account_cache = AccountCache(redis_client)
    channel_cache = ChannelCache(redis_client)
    server_member_cache = ServerMemberCache(redis_client)
    broadcaster = Broadcaster(sio)
    set_account_cache(account_cache)
    set_channel_cache(channel_cache)
    set_server_member_cache(server_member_cache)
    set_broadcaster(broadcaster)
    set_channel_service(ChannelService(
        channel_cache,
        server_member_cache,
        broadcaster,
        channel_limit=settings.server_channel_limit,
    ))
    register_handlers(broadcaster, account_cache, get_session_factory(), settings)
    logger.info("Startup complete")

    yield

    # Shutdown: Clean up services, caches and Redis
    set_channel_service(None)
    set_broadcaster(None)
    set_server_member_cache(None)
    set_channel_cache(None)
    set_account_cache(None)
    await redis_client.close()
    set_redis_client(None)


app = FastAPI(
    title="Chat API",
    description="Servers, channels and realtime notifications.",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(CacheUnavailableError)
async def cache_unavailable_exception_handler(
    _request: Request, exc: CacheUnavailableError,
) -> JSONResponse:
    """Hide cache failure detail from clients."""
    logger.error("Request failed, cache unavailable: %s", exc)
    return JSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable. Please try again later."},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(channels.router)
app.include_router(servers.router)
app.include_router(users.router)

# ASGI entry point: Socket.IO on /socket.io, everything else to FastAPI
asgi_app = socketio.ASGIApp(sio, other_asgi_app=app)
