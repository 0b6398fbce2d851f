"""Tests for the SQLAlchemy-backed record store."""
from datetime import UTC, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.record_store import SqlAlchemyRecordStore, generate_user_id

T0 = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=UTC)


def test__generate_user_id__is_24_hex_chars() -> None:
    """Ids have the shape of a 12-byte hex string and are unique."""
    first, second = generate_user_id(), generate_user_id()
    assert len(first) == 24
    int(first, 16)
    assert first != second


class TestSqlAlchemyRecordStore:
    """Tests for SqlAlchemyRecordStore against SQLite."""

    async def test__create__assigns_id_and_persists(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Created records can be read back by their new id."""
        store = SqlAlchemyRecordStore(session_factory)

        created = await store.create("Test User", "test.user@example.com", T0)
        fetched = await store.get_by_id(created.id)

        assert len(created.id) == 24
        assert fetched == created

    async def test__create__defaults_last_access_to_now(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Without an explicit timestamp the creation time is used."""
        store = SqlAlchemyRecordStore(session_factory)
        before = datetime.now(UTC)

        created = await store.create("A", "a@x")

        assert created.last_access >= before

    async def test__get_by_id__unknown_id_returns_none(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Missing ids read as None."""
        store = SqlAlchemyRecordStore(session_factory)

        assert await store.get_by_id("0" * 24) is None

    async def test__get_by_id__returns_aware_utc(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Timestamps come back timezone-aware, in UTC, to the microsecond."""
        store = SqlAlchemyRecordStore(session_factory)
        plus_two = timezone(timedelta(hours=2))
        created = await store.create("A", "a@x", T0.astimezone(plus_two))

        fetched = await store.get_by_id(created.id)

        assert fetched is not None
        assert fetched.last_access.tzinfo is UTC
        assert fetched.last_access == T0

    async def test__replace__overwrites_fields(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Replace rewrites name, email and last_access of the matching row."""
        store = SqlAlchemyRecordStore(session_factory)
        created = await store.create("A", "a@x", T0)
        later = T0 + timedelta(minutes=30)
        updated = created.model_copy(update={"last_access": later, "name": "B"})

        assert await store.replace(created.id, updated) is True

        fetched = await store.get_by_id(created.id)
        assert fetched == updated

    async def test__replace__unknown_id_returns_false(
        self, session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Replacing a missing id matches nothing and creates nothing."""
        store = SqlAlchemyRecordStore(session_factory)
        created = await store.create("A", "a@x", T0)
        ghost = created.model_copy(update={"id": "f" * 24})

        assert await store.replace(ghost.id, ghost) is False
        assert await store.get_by_id(ghost.id) is None
