"""
Notification mailbox endpoints.

Clients poll GET /notifications; every other call is scoped to the caller's
own notifications.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, pagination_params
from domain.responses import ERROR_RESPONSES, paginated_response, success_response
from middleware.auth import Actor, get_current_actor
from services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"], responses=ERROR_RESPONSES)


@router.get("")
async def list_notifications(
    page: Pagination = Depends(pagination_params),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    mailbox = await notification_service.list_notifications(
        db, actor.id, limit=page["limit"], offset=page["offset"]
    )
    return paginated_response(
        [notification_service.serialize_notification(n) for n in mailbox["notifications"]],
        limit=page["limit"],
        offset=page["offset"],
        total=mailbox["total"],
        extra_meta={"unread_count": mailbox["unread_count"]},
    )


# Declared before /{notification_id}/read so "read-all" is not parsed as an id
@router.put("/read-all")
async def mark_all_read(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    changed = await notification_service.mark_all_read(db, actor.id)
    await db.commit()
    return success_response(data={"marked_read": changed, "unread_count": 0})


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    notification = await notification_service.mark_read(db, notification_id, actor.id)
    await db.commit()
    return success_response(data=notification_service.serialize_notification(notification))


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
):
    await notification_service.delete_notification(db, notification_id, actor.id)
    await db.commit()
    return success_response(data={"id": notification_id, "deleted": True})
