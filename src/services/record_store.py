"""Durable store for user session records."""
import logging
import secrets
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db.session import session_scope
from models.user import User
from schemas.user_record import UserRecord

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Key to record persistence: the system of record for users."""

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        """Return the record for `user_id`, or None if there is none."""
        ...

    async def create(
        self, name: str, email: str, last_access: datetime | None = None,
    ) -> UserRecord:
        """Persist a new record and return it with its assigned id."""
        ...

    async def replace(self, user_id: str, record: UserRecord) -> bool:
        """Overwrite the record stored under `user_id`."""
        ...


def generate_user_id() -> str:
    """Return a new 24-character hex identifier."""
    return secrets.token_hex(12)


class SqlAlchemyRecordStore:
    """RecordStore over the `users` table. Each call uses its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_id(self, user_id: str) -> UserRecord | None:
        async with session_scope(self._session_factory) as session:
            user = await session.scalar(select(User).where(User.id == user_id))
            if user is None:
                return None
            return UserRecord.model_validate(user)

    async def create(
        self, name: str, email: str, last_access: datetime | None = None,
    ) -> UserRecord:
        record = UserRecord(
            id=generate_user_id(),
            name=name,
            email=email,
            last_access=last_access or datetime.now(UTC),
        )
        async with session_scope(self._session_factory) as session:
            session.add(User(**record.model_dump()))
        logger.info("user_created", extra={"user_id": record.id})
        return record

    async def replace(self, user_id: str, record: UserRecord) -> bool:
        """
        Replace name, email and last_access of the row keyed by `user_id`.

        The id itself is never rewritten. Returns False if no row matched.
        """
        async with session_scope(self._session_factory) as session:
            result = await session.execute(
                update(User)
                .where(User.id == user_id)
                .values(
                    name=record.name,
                    email=record.email,
                    last_access=record.last_access,
                ),
            )
            matched = result.rowcount > 0
        if not matched:
            logger.warning("user_replace_missed", extra={"user_id": user_id})
        return matched
