"""FastAPI dependencies for injection."""
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import session_scope
from services.record_store import RecordStore
from services.session_resolver import SessionResolver


async def get_async_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a database session from the app's session factory."""
    async with session_scope(request.app.state.session_factory) as session:
        yield session


def get_record_store(request: Request) -> RecordStore:
    """Durable user store created at startup."""
    return request.app.state.record_store


def get_session_resolver(request: Request) -> SessionResolver:
    """Session resolver created at startup."""
    return request.app.state.session_resolver


__all__ = [
    "get_async_session",
    "get_record_store",
    "get_session_resolver",
]
