"""In-app notification read routes."""
from fastapi import APIRouter, Query

from market_watch.deps import NotificationStoreDep, OwnerId
from market_watch.exceptions import NotificationNotFoundError
from market_watch.providers.core import ErrorMapper
from market_watch.schemas import NotificationPage, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])

_errors = ErrorMapper(resource_name="Notification")


@router.get("", response_model=NotificationPage)
def list_notifications(
    owner_id: OwnerId,
    store: NotificationStoreDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    unread_only: bool = False,
) -> NotificationPage:
    return store.list_for(owner_id, page=page, limit=limit, unread_only=unread_only)


@router.get("/unread-count")
def unread_count(owner_id: OwnerId, store: NotificationStoreDep) -> dict[str, int]:
    return {"count": store.unread_count(owner_id)}


@router.patch("/read-all")
def mark_all_read(owner_id: OwnerId, store: NotificationStoreDep) -> dict[str, int]:
    return {"updated": store.mark_all_read(owner_id)}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int, owner_id: OwnerId, store: NotificationStoreDep
) -> NotificationRead:
    try:
        return store.mark_read(owner_id, notification_id)
    except NotificationNotFoundError as exc:
        _errors.raise_http(exc, resource_id=notification_id)
