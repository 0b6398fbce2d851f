"""User record schema and its cache encoding."""
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator


class CacheDecodeError(ValueError):
    """Raised when a cached payload cannot be decoded into a UserRecord."""


class UserRecord(BaseModel):
    """
    A user as seen by the session resolver.

    The same shape is stored in Redis (as JSON) and returned to API callers.
    `last_access` is always timezone-aware UTC so that values read back from
    either store compare correctly.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    last_access: datetime

    @field_validator("last_access")
    @classmethod
    def normalize_to_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC and convert aware ones to UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class UserCreate(BaseModel):
    """Payload for creating a user."""

    name: str
    email: str


def encode_user_record(record: UserRecord) -> bytes:
    """Serialize a record for the cache (JSON, microsecond timestamps)."""
    return record.model_dump_json().encode("utf-8")


def decode_user_record(raw: bytes | str) -> UserRecord:
    """
    Deserialize a cached record.

    Raises CacheDecodeError for anything that is not a complete record, so
    callers can treat corrupt entries the same as missing ones.
    """
    try:
        return UserRecord.model_validate_json(raw)
    except (ValidationError, UnicodeDecodeError) as e:
        raise CacheDecodeError(str(e)) from e
