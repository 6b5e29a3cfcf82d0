from fastapi import APIRouter, Depends, HTTPException, Query, status

from hiremistri.api.deps import get_notification_service
from hiremistri.schemas.notifications import NotificationOut, ReadAllResponse
from hiremistri.services.errors import ForbiddenError, NotFoundError, UnavailableError
from hiremistri.services.notifications import NotificationService

router = APIRouter()


@router.get("/{user_id}", response_model=list[NotificationOut])
async def list_notifications(
    user_id: str,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    notifications: NotificationService = Depends(get_notification_service),
) -> list[NotificationOut]:
    try:
        rows = await notifications.list_for_user(user_id, unread_only=unread_only, limit=limit)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return [NotificationOut(**row) for row in rows]


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_notification_read(
    notification_id: str,
    user_id: str | None = Query(default=None),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationOut:
    try:
        row = await notifications.mark_read(notification_id, user_id=user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return NotificationOut(**row)


@router.patch("/{user_id}/read-all", response_model=ReadAllResponse)
async def mark_all_notifications_read(
    user_id: str,
    notifications: NotificationService = Depends(get_notification_service),
) -> ReadAllResponse:
    try:
        updated = await notifications.mark_all_read(user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return ReadAllResponse(updated=updated)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    user_id: str | None = Query(default=None),
    notifications: NotificationService = Depends(get_notification_service),
) -> dict[str, str]:
    try:
        await notifications.delete(notification_id, user_id=user_id)
    except UnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return {"status": "deleted"}
