"""
Notification Service — per-recipient mailbox.

Delivery model:
    - No push. Consumers poll list_notifications() on a fixed interval.
    - emit() adds the row to the caller's session and flushes, so it commits
      together with whatever state change triggered it, and the very next
      list_notifications() after commit sees it.

Ownership:
    - Every mutating call is scoped to the recipient. Touching someone else's
      notification raises NotFoundError, exactly as if it did not exist.
"""
import logging
from datetime import datetime

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Notification, utcnow
from domain.enums import NotificationPriority, NotificationStatus, NotificationType
from domain.errors import NotFoundError

logger = logging.getLogger(__name__)


async def emit(
    db: AsyncSession,
    *,
    recipient_id: str,
    type: NotificationType,
    title: str,
    message: str,
    related_order_id: int | None = None,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    now: datetime | None = None,
) -> Notification:
    """Create an unread notification for a single recipient."""
    notification = Notification(
        recipient_id=recipient_id,
        type=NotificationType(type).value,
        title=title,
        message=message,
        related_order_id=related_order_id,
        status=NotificationStatus.UNREAD.value,
        priority=NotificationPriority(priority).value,
        created_at=now or utcnow(),
    )
    db.add(notification)
    await db.flush()
    logger.info(
        f"Notification {notification.id} ({notification.type}) queued for {recipient_id}"
    )
    return notification


async def _get_owned(db: AsyncSession, notification_id: int, recipient_id: str) -> Notification:
    res = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id,
        )
    )
    notification = res.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification", str(notification_id))
    return notification


async def count_unread(db: AsyncSession, recipient_id: str) -> int:
    res = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == recipient_id,
            Notification.status == NotificationStatus.UNREAD.value,
        )
    )
    return res.scalar() or 0


async def list_notifications(
    db: AsyncSession,
    recipient_id: str,
    *,
    limit: int = 50,
    offset: int = 0,
) -> dict:
    """
    Recipient's mailbox, newest first.

    Returns:
        dict: {notifications: [Notification], unread_count: int, total: int}
    """
    res = await db.execute(
        select(Notification)
        .where(Notification.recipient_id == recipient_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(offset)
    )
    notifications = list(res.scalars().all())

    total_res = await db.execute(
        select(func.count(Notification.id)).where(Notification.recipient_id == recipient_id)
    )

    return {
        "notifications": notifications,
        "unread_count": await count_unread(db, recipient_id),
        "total": total_res.scalar() or 0,
    }


async def mark_read(
    db: AsyncSession,
    notification_id: int,
    recipient_id: str,
    now: datetime | None = None,
) -> Notification:
    notification = await _get_owned(db, notification_id, recipient_id)
    if notification.status != NotificationStatus.READ.value:
        notification.status = NotificationStatus.READ.value
        notification.read_at = now or utcnow()
        await db.flush()
    return notification


async def mark_all_read(db: AsyncSession, recipient_id: str, now: datetime | None = None) -> int:
    """Mark every unread notification of the recipient as read. Returns the number changed."""
    result = await db.execute(
        update(Notification)
        .where(
            Notification.recipient_id == recipient_id,
            Notification.status == NotificationStatus.UNREAD.value,
        )
        .values(status=NotificationStatus.READ.value, read_at=now or utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, notification_id: int, recipient_id: str) -> None:
    notification = await _get_owned(db, notification_id, recipient_id)
    await db.delete(notification)
    await db.flush()


def serialize_notification(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "related_order_id": n.related_order_id,
        "status": n.status,
        "priority": n.priority,
        "created_at": n.created_at.isoformat() if n.created_at else None,
        "read_at": n.read_at.isoformat() if n.read_at else None,
    }
