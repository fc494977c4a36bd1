"""
History endpoint: the caller's most recent explanations, newest first.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from api.bootstrap import get_history
from api.config import Settings, get_settings
from api.schemas.auth_schemas import Identity
from api.schemas.generate_schemas import ErrorResponse
from api.schemas.history_schemas import HistoryEntryResponse
from api.utils.auth import get_current_identity
from api.utils.common import to_history_entry
from api.utils.history_store import HistoryStore, PersistenceError
from api.utils.logger import configure_logging

logger = configure_logging()

history_routes = APIRouter()


@history_routes.get(
    "/history",
    response_model=list[HistoryEntryResponse],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def list_history(
    identity: Identity = Depends(get_current_identity),
    store: HistoryStore = Depends(get_history),
    settings: Settings = Depends(get_settings),
) -> list[HistoryEntryResponse]:
    """List the current user's history, capped at the page size."""
    logger.info("history request uid=%s", identity.uid)
    try:
        records = store.query_by_identity(identity.uid, limit=settings.history_page_size)
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Sorry, couldn't get the history.",
        ) from e
    return [to_history_entry(r) for r in records]
