"""
Cache-aside resolution of user session records.

A lookup checks Redis first. On a miss the record is loaded from the
database, its `last_access` is stamped, and the fresh copy is written to the
cache and then back to the database. Cache hits never touch the database and
do not advance `last_access`.

Collaborator failures never escape `resolve`: they are logged and reported
as a `Degraded` outcome, which callers may treat as "not found".
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from schemas.user_record import (
    CacheDecodeError,
    UserRecord,
    decode_user_record,
    encode_user_record,
)
from services.cache_store import CacheStore
from services.record_store import RecordStore

logger = logging.getLogger(__name__)


class ResolveSource(Enum):
    """Where a found record was served from."""

    CACHE = "cache"
    STORE = "store"


class ResolveStage(Enum):
    """Step of a resolution, used to report where a fault happened."""

    CACHE_LOOKUP = "cache_lookup"
    STORE_LOOKUP = "store_lookup"
    CACHE_WRITE = "cache_write"
    STORE_WRITE = "store_write"


@dataclass(frozen=True)
class Found:
    """The record exists."""

    record: UserRecord
    source: ResolveSource


@dataclass(frozen=True)
class NotFound:
    """No record exists for the identifier."""

    user_id: str

    @property
    def record(self) -> None:
        return None


@dataclass(frozen=True)
class Degraded:
    """A cache or database fault prevented the lookup from completing."""

    user_id: str
    stage: ResolveStage
    error: Exception

    @property
    def record(self) -> None:
        return None


ResolveOutcome = Found | NotFound | Degraded


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class _InFlight:
    task: asyncio.Task[ResolveOutcome]
    waiters: int = field(default=0)


class SessionResolver:
    """Resolve user records from the cache, falling back to the database."""

    def __init__(
        self,
        cache: CacheStore,
        store: RecordStore,
        cache_ttl: timedelta,
        *,
        key_prefix: str = "",
        clock: Callable[[], datetime] | None = None,
        coalesce: bool = True,
    ) -> None:
        if cache_ttl <= timedelta(0):
            raise ValueError(f"cache_ttl must be positive, got {cache_ttl}")
        self._cache = cache
        self._store = store
        self._cache_ttl = cache_ttl
        self._key_prefix = key_prefix
        self._clock = clock or _utcnow
        self._coalesce = coalesce
        self._in_flight: dict[str, _InFlight] = {}

    @property
    def cache_ttl(self) -> timedelta:
        return self._cache_ttl

    def cache_key(self, user_id: str) -> str:
        """Cache key for a user id."""
        return f"{self._key_prefix}{user_id}"

    async def resolve(self, user_id: str) -> ResolveOutcome:
        """
        Return the current record for `user_id`.

        Concurrent calls for the same id share one resolution when coalescing
        is enabled. A cancelled caller stops waiting; the shared work is only
        cancelled once no caller is left waiting on it.
        """
        if not self._coalesce:
            return await self._resolve_once(user_id)

        flight = self._in_flight.get(user_id)
        if flight is None or flight.waiters == 0:
            flight = _InFlight(asyncio.ensure_future(self._resolve_once(user_id)))
            self._in_flight[user_id] = flight
            flight.task.add_done_callback(
                lambda _task, f=flight: self._forget(user_id, f),
            )
        else:
            logger.debug("session_resolve_coalesced", extra={"user_id": user_id})

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                flight.task.cancel()

    async def resolve_user(self, user_id: str) -> UserRecord | None:
        """Return the record, or None when it is absent or unreachable."""
        outcome = await self.resolve(user_id)
        return outcome.record

    def _forget(self, user_id: str, flight: _InFlight) -> None:
        if self._in_flight.get(user_id) is flight:
            del self._in_flight[user_id]

    async def _resolve_once(self, user_id: str) -> ResolveOutcome:
        key = self.cache_key(user_id)
        stage = ResolveStage.CACHE_LOOKUP
        try:
            cached = self._decode_cached(user_id, await self._cache.get(key))
            if cached is not None:
                logger.debug("session_cache_hit", extra={"user_id": user_id})
                return Found(cached, ResolveSource.CACHE)

            logger.debug("session_cache_miss", extra={"user_id": user_id})
            stage = ResolveStage.STORE_LOOKUP
            stored = await self._store.get_by_id(user_id)
            if stored is None:
                logger.info("session_user_not_found", extra={"user_id": user_id})
                return NotFound(user_id)

            # never move last_access backwards, even if the clock does
            now = max(self._clock(), stored.last_access)
            record = stored.model_copy(update={"last_access": now})

            stage = ResolveStage.CACHE_WRITE
            await self._cache.set(key, encode_user_record(record), self._cache_ttl)

            stage = ResolveStage.STORE_WRITE
            await self._store.replace(user_id, record)
        except Exception as e:
            logger.warning(
                "session_resolve_degraded",
                extra={"user_id": user_id, "stage": stage.value},
                exc_info=e,
            )
            return Degraded(user_id, stage, e)

        logger.info("session_loaded_from_store", extra={"user_id": user_id})
        return Found(record, ResolveSource.STORE)

    def _decode_cached(self, user_id: str, raw: bytes | None) -> UserRecord | None:
        if raw is None:
            return None
        try:
            return decode_user_record(raw)
        except CacheDecodeError as e:
            logger.warning(
                "session_cache_entry_invalid",
                extra={"user_id": user_id, "error": str(e)},
            )
            return None
