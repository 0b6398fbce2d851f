"""FastAPI application entry point."""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routers import health, users
from core.config import get_settings
from core.redis import RedisClient, set_redis_client
from db.session import create_engine, create_session_factory, create_tables
from services.cache_store import RedisCacheStore
from services.record_store import SqlAlchemyRecordStore
from services.session_resolver import SessionResolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect to Redis and the database, and wire the session resolver."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    engine = create_engine(settings.database_url)
    await create_tables(engine)
    session_factory = create_session_factory(engine)

    redis_client = RedisClient(settings.redis_url, enabled=settings.redis_enabled)
    await redis_client.connect()
    set_redis_client(redis_client)

    record_store = SqlAlchemyRecordStore(session_factory)
    app.state.session_factory = session_factory
    app.state.record_store = record_store
    app.state.session_resolver = SessionResolver(
        RedisCacheStore(redis_client),
        record_store,
        settings.session_cache_ttl,
        key_prefix=settings.session_cache_key_prefix,
        coalesce=settings.session_coalesce_misses,
    )
    logger.info(
        "session_resolver_ready",
        extra={"cache_ttl_seconds": settings.session_cache_ttl_seconds},
    )
    try:
        yield
    finally:
        await redis_client.close()
        set_redis_client(None)
        await engine.dispose()


app = FastAPI(
    title="User Session Cache API",
    description="Cache-aside user lookups backed by Redis and a SQL database.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(users.router)
