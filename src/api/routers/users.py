"""User session endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.dependencies import get_record_store, get_session_resolver
from schemas.user_record import UserCreate, UserRecord
from services.record_store import RecordStore
from services.session_resolver import Degraded, Found, SessionResolver

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}", response_model=UserRecord)
async def get_user(
    user_id: str,
    response: Response,
    resolver: SessionResolver = Depends(get_session_resolver),
) -> UserRecord:
    """
    Resolve a user, serving from the cache when possible.

    The `X-Session-Source` header says whether the record came from the cache
    or the database. A 503 means a backing store failed; the user may exist.
    """
    outcome = await resolver.resolve(user_id)
    if isinstance(outcome, Found):
        response.headers["X-Session-Source"] = outcome.source.value
        return outcome.record
    if isinstance(outcome, Degraded):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"User lookup unavailable ({outcome.stage.value})",
        )
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")


@router.post("", response_model=UserRecord, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    store: RecordStore = Depends(get_record_store),
) -> UserRecord:
    """Create a user in the database. The cache is populated on first lookup."""
    return await store.create(name=data.name, email=data.email)
