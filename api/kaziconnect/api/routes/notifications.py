from fastapi import APIRouter, Depends, Query

from kaziconnect.api.deps import get_page, pagination_for
from kaziconnect.core.security import get_principal
from kaziconnect.schemas.common import Envelope, PageOut
from kaziconnect.schemas.notifications import MarkAllReadOut, NotificationOut, UnreadCountOut
from kaziconnect.services.filters import Page
from kaziconnect.services.repository import get_repository

router = APIRouter()


@router.get("", response_model=PageOut[NotificationOut])
async def list_notifications(
    is_read: bool | None = Query(default=None),
    principal=Depends(get_principal),
    page: Page = Depends(get_page),
    repository=Depends(get_repository),
) -> PageOut[NotificationOut]:
    rows, total = await repository.list_notifications(
        user_id=principal.user_id,
        filters={"is_read": is_read},
        page=page,
    )
    return PageOut[NotificationOut](
        items=[NotificationOut(**row) for row in rows],
        pagination=pagination_for(page, total),
    )


@router.get("/unread-count", response_model=UnreadCountOut)
async def unread_count(principal=Depends(get_principal), repository=Depends(get_repository)) -> UnreadCountOut:
    return UnreadCountOut(count=await repository.unread_count(user_id=principal.user_id))


@router.put("/read-all", response_model=MarkAllReadOut)
async def mark_all_read(principal=Depends(get_principal), repository=Depends(get_repository)) -> MarkAllReadOut:
    updated = await repository.mark_all_notifications_read(user_id=principal.user_id)
    return MarkAllReadOut(message="All notifications marked as read", updated=updated)


@router.put("/{notification_id}/read", response_model=Envelope)
async def mark_read(
    notification_id: int,
    principal=Depends(get_principal),
    repository=Depends(get_repository),
) -> Envelope:
    await repository.mark_notification_read(user_id=principal.user_id, notification_id=notification_id)
    return Envelope(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=Envelope)
async def delete_notification(
    notification_id: int,
    principal=Depends(get_principal),
    repository=Depends(get_repository),
) -> Envelope:
    await repository.delete_notification(user_id=principal.user_id, notification_id=notification_id)
    return Envelope(message="Notification deleted")
