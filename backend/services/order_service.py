"""
Order Service — order store queries, status transition engine, visibility overlay.

Status changes:
    - Validated against the single role-aware table in domain.transitions.
    - Applied with a conditional UPDATE keyed on (id, expected status, version),
      so two actors racing on the same order cannot silently lose an update.
    - The status write, derived timestamps, status-change log row and the
      customer notification share one transaction: the caller commits them
      together or not at all.
    - Re-applying the current status is a no-op (no write, no notification).

Visibility:
    - hidden_from_admin and hidden_from_customer are independent projections
      over the same row. Orders are never physically deleted.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, OrderItem, OrderStatusEvent, utcnow
from domain import transitions
from domain.constants import ACTIVE_STATUSES, ORDER_REF_WIDTH, STATUS_LABELS, TERMINAL_STATUSES, TOTALS_TOLERANCE
from domain.delivery_window import delivery_window_text, format_calendar_date
from domain.enums import (
    ActorRole, NotificationPriority, NotificationType, OrderStatus, PaymentMethod, PaymentStatus,
)
from domain.errors import (
    AdminCannotConfirmDeliveryError,
    AuthorizationError,
    ConcurrentModificationError,
    InvalidTransitionError,
    NotDeletableError,
    NotFoundError,
    OrderTerminalError,
    ValidationError,
)
from models import OrderCreateRequest
from services import notification_service

logger = logging.getLogger(__name__)


def order_ref(order_id: int) -> str:
    """Short customer-facing order reference, e.g. '00000042'."""
    return str(order_id).zfill(ORDER_REF_WIDTH)[-ORDER_REF_WIDTH:]


# ════════════════════════════════════════════════════════════════════
# Creation & reads
# ════════════════════════════════════════════════════════════════════

async def create_order(
    db: AsyncSession,
    *,
    customer_id: str,
    request: OrderCreateRequest,
    now: datetime | None = None,
) -> Order:
    """
    Store a checked-out order with its item snapshots.

    COD orders are accepted as paid; online orders wait for the payment
    gateway to confirm.
    """
    if not request.items:
        raise ValidationError("Order must contain at least one item", field="items")

    expected_total = request.subtotal + request.tax + request.shipping
    if abs(request.total - expected_total) > TOTALS_TOLERANCE:
        raise ValidationError(
            f"total {request.total} does not equal subtotal + tax + shipping ({round(expected_total, 2)})",
            field="total",
        )

    now = now or utcnow()
    payment_status = (
        PaymentStatus.SUCCEEDED if request.payment_method == PaymentMethod.COD else PaymentStatus.PENDING
    )
    order = Order(
        customer_id=customer_id,
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone=request.phone,
        address=request.address,
        city=request.city,
        zip_code=request.zip_code,
        subtotal=request.subtotal,
        tax=request.tax,
        shipping=request.shipping,
        total=request.total,
        payment_method=PaymentMethod(request.payment_method).value,
        payment_status=payment_status.value,
        status=OrderStatus.PENDING.value,
        version=0,
        hidden_from_admin=False,
        hidden_from_customer=False,
        created_at=now,
        updated_at=now,
        items=[
            OrderItem(
                name=i.name,
                price=i.price,
                image_url=i.image_url,
                quantity=i.quantity,
            )
            for i in request.items
        ],
    )
    db.add(order)
    await db.flush()
    logger.info(f"Order {order.id} created for customer {customer_id} ({order.payment_method})")
    return order


async def get_order(db: AsyncSession, order_id: int) -> Order | None:
    res = await db.execute(select(Order).where(Order.id == order_id))
    return res.scalar_one_or_none()


async def _require_order(db: AsyncSession, order_id: int) -> Order:
    order = await get_order(db, order_id)
    if not order:
        raise NotFoundError("Order", str(order_id))
    return order


async def get_customer_order(db: AsyncSession, order_id: int, customer_id: str) -> Order:
    """A customer's own, non-hidden order. Anything else looks missing."""
    order = await get_order(db, order_id)
    if not order or order.customer_id != customer_id or order.hidden_from_customer:
        raise NotFoundError("Order", str(order_id))
    return order


def _visibility_filters(role: ActorRole, customer_id: str | None, active_only: bool, include_hidden: bool) -> list:
    role = ActorRole(role)
    filters = []
    if role == ActorRole.ADMIN:
        if not include_hidden:
            filters.append(Order.hidden_from_admin == False)  # noqa: E712
    else:
        if not customer_id:
            raise ValidationError("customer_id is required for customer listings", field="customer_id")
        filters.append(Order.customer_id == customer_id)
        if not include_hidden:
            filters.append(Order.hidden_from_customer == False)  # noqa: E712
    if active_only:
        filters.append(Order.status.in_([s.value for s in ACTIVE_STATUSES]))
    return filters


async def list_orders(
    db: AsyncSession,
    *,
    role: ActorRole,
    customer_id: str | None = None,
    active_only: bool = False,
    include_hidden: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[Order]:
    """
    Orders visible to ``role``, newest first.

    Admin listings skip hidden_from_admin rows; customer listings are limited
    to the customer's own orders and skip hidden_from_customer rows.
    """
    res = await db.execute(
        select(Order)
        .where(*_visibility_filters(role, customer_id, active_only, include_hidden))
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(res.scalars().all())


async def count_orders(
    db: AsyncSession,
    *,
    role: ActorRole,
    customer_id: str | None = None,
    active_only: bool = False,
    include_hidden: bool = False,
) -> int:
    res = await db.execute(
        select(func.count(Order.id)).where(
            *_visibility_filters(role, customer_id, active_only, include_hidden)
        )
    )
    return res.scalar() or 0


async def count_active_orders(db: AsyncSession) -> int:
    """Badge counter for the admin dashboard. Derived on every poll; not authoritative."""
    return await count_orders(db, role=ActorRole.ADMIN, active_only=True)


async def get_order_history(db: AsyncSession, order_id: int) -> list[OrderStatusEvent]:
    await _require_order(db, order_id)
    res = await db.execute(
        select(OrderStatusEvent)
        .where(OrderStatusEvent.order_id == order_id)
        .order_by(OrderStatusEvent.created_at.asc(), OrderStatusEvent.id.asc())
    )
    return list(res.scalars().all())


# ════════════════════════════════════════════════════════════════════
# Status Transition Engine
# ════════════════════════════════════════════════════════════════════

async def compare_and_set_status(
    db: AsyncSession,
    *,
    order_id: int,
    expected_status: OrderStatus,
    expected_version: int,
    values: dict,
) -> bool:
    """
    Conditionally write ``values`` (which include the new status).

    Succeeds only if the row still has the status and version the caller
    read; bumps version. Returns False when another writer got there first.
    """
    result = await db.execute(
        update(Order)
        .where(
            Order.id == order_id,
            Order.status == OrderStatus(expected_status).value,
            Order.version == expected_version,
        )
        .values(version=Order.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _status_notification(order: Order, new_status: OrderStatus, now: datetime) -> dict:
    label = STATUS_LABELS[new_status]
    ref = order_ref(order.id)

    if new_status == OrderStatus.DELIVERED:
        return {
            "title": "Order Delivered - Confirmed by Customer",
            "message": (
                f"Order #{ref} has been confirmed as delivered by the customer "
                f"on {format_calendar_date(now, settings.display_timezone)}."
            ),
            "priority": NotificationPriority.HIGH,
        }

    message = f"Your order #{ref} status is now {label}."
    if new_status == OrderStatus.OUT_FOR_DELIVERY:
        message += (
            f" Expected delivery: within {settings.delivery_window_minutes} minutes."
            " Please confirm delivery once you receive your order."
        )
    return {
        "title": f"Order {label}",
        "message": message,
        "priority": NotificationPriority.MEDIUM,
    }


async def apply_transition(
    db: AsyncSession,
    *,
    order_id: int,
    requested_status: OrderStatus,
    actor_role: ActorRole,
    actor_id: str,
    expected_version: int | None = None,
    now: datetime | None = None,
) -> Order:
    """
    Validate and apply a status change requested by an actor.

    Raises:
        NotFoundError: order does not exist
        AuthorizationError: customer acting on another customer's order, or
            customer requesting any status other than delivered
        AdminCannotConfirmDeliveryError: admin requested delivered
        OrderTerminalError: order already delivered or cancelled
        InvalidTransitionError: (current, requested, role) not in the table
        ConcurrentModificationError: stale expected_version or lost race

    Returns the order unchanged when requested_status equals the current status.
    """
    requested = OrderStatus(requested_status)
    role = ActorRole(actor_role)

    order = await _require_order(db, order_id)
    current = OrderStatus(order.status)

    if role == ActorRole.CUSTOMER and order.customer_id != actor_id:
        raise AuthorizationError(
            "Access denied: order belongs to another customer",
            details={"order_id": order_id},
        )

    if role == ActorRole.ADMIN and requested == OrderStatus.DELIVERED:
        raise AdminCannotConfirmDeliveryError(order_id)

    if transitions.is_terminal(current):
        raise OrderTerminalError(order_id, current.value)

    if requested == current:
        logger.debug(f"Order {order_id} already {current.value}; nothing to do")
        return order

    if not transitions.is_allowed(current, requested, role):
        # Admins only reach here for graph violations; delivered was rejected above
        if role == ActorRole.CUSTOMER and not transitions.role_can_target(requested, role):
            raise AuthorizationError(
                f"Role '{role.value}' may not set order status to {requested.value}",
                details={"order_id": order_id, "requested_status": requested.value},
            )
        raise InvalidTransitionError(order_id, current.value, requested.value)

    if expected_version is not None and expected_version != order.version:
        raise ConcurrentModificationError(order_id)

    now = now or utcnow()
    values = {"status": requested.value, "updated_at": now}
    if requested == OrderStatus.OUT_FOR_DELIVERY:
        values["expected_delivery"] = now + timedelta(minutes=settings.delivery_window_minutes)
    if requested == OrderStatus.DELIVERED:
        values["delivered_at"] = now

    swapped = await compare_and_set_status(
        db,
        order_id=order_id,
        expected_status=current,
        expected_version=order.version,
        values=values,
    )
    if not swapped:
        logger.warning(f"Lost update on order {order_id} ({current.value} → {requested.value})")
        raise ConcurrentModificationError(order_id)

    db.add(
        OrderStatusEvent(
            order_id=order_id,
            from_status=current.value,
            to_status=requested.value,
            actor_role=role.value,
            actor_id=actor_id,
            created_at=now,
        )
    )

    note = _status_notification(order, requested, now)
    await notification_service.emit(
        db,
        recipient_id=order.customer_id,
        type=NotificationType.STATUS_UPDATE,
        title=note["title"],
        message=note["message"],
        related_order_id=order_id,
        priority=note["priority"],
        now=now,
    )

    await db.refresh(order)
    logger.info(
        f"Order {order_id}: {current.value} → {requested.value} by {role.value} {actor_id}"
    )
    return order


async def confirm_delivery(
    db: AsyncSession,
    *,
    order_id: int,
    customer_id: str,
    now: datetime | None = None,
) -> Order:
    """Customer confirms receipt: outForDelivery → delivered."""
    return await apply_transition(
        db,
        order_id=order_id,
        requested_status=OrderStatus.DELIVERED,
        actor_role=ActorRole.CUSTOMER,
        actor_id=customer_id,
        now=now,
    )


# ════════════════════════════════════════════════════════════════════
# Visibility Overlay
# ════════════════════════════════════════════════════════════════════

async def hide_from_admin(db: AsyncSession, *, order_id: int, now: datetime | None = None) -> Order:
    """Remove an order from admin listings. The customer's view is untouched."""
    order = await _require_order(db, order_id)
    if order.hidden_from_admin:
        return order
    order.hidden_from_admin = True
    order.admin_hidden_at = now or utcnow()
    await db.flush()
    logger.info(f"Order {order_id} hidden from admin")
    return order


async def hide_from_customer(
    db: AsyncSession,
    *,
    order_id: int,
    customer_id: str,
    now: datetime | None = None,
) -> Order:
    """Remove a finished order from the customer's history. The admin view is untouched."""
    order = await _require_order(db, order_id)
    if order.customer_id != customer_id:
        raise AuthorizationError(
            "Access denied: order belongs to another customer",
            details={"order_id": order_id},
        )
    if OrderStatus(order.status) not in TERMINAL_STATUSES:
        raise NotDeletableError(order_id, order.status)
    if order.hidden_from_customer:
        return order
    order.hidden_from_customer = True
    order.customer_hidden_at = now or utcnow()
    await db.flush()
    logger.info(f"Order {order_id} hidden from customer {customer_id}")
    return order


async def delete_order(
    db: AsyncSession,
    *,
    order_id: int,
    actor_role: ActorRole,
    actor_id: str,
    now: datetime | None = None,
) -> Order:
    """Soft delete for the calling actor's projection only."""
    if ActorRole(actor_role) == ActorRole.ADMIN:
        return await hide_from_admin(db, order_id=order_id, now=now)
    return await hide_from_customer(db, order_id=order_id, customer_id=actor_id, now=now)


# ════════════════════════════════════════════════════════════════════
# Serialization
# ════════════════════════════════════════════════════════════════════

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def serialize_order(order: Order, now: datetime | None = None) -> dict:
    """
    Order as returned to pollers.

    delivery_window is derived from expected_delivery at call time.
    Raises ValueError for rows whose status is not a known OrderStatus.
    """
    status = OrderStatus(order.status)
    now = now or utcnow()
    return {
        "id": order.id,
        "ref": order_ref(order.id),
        "customer_id": order.customer_id,
        "first_name": order.first_name,
        "last_name": order.last_name,
        "email": order.email,
        "phone": order.phone,
        "address": order.address,
        "city": order.city,
        "zip_code": order.zip_code,
        "items": [
            {
                "id": i.id,
                "item": {"name": i.name, "price": i.price, "image_url": i.image_url},
                "quantity": i.quantity,
            }
            for i in order.items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping": order.shipping,
        "total": order.total,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "status": status.value,
        "status_label": STATUS_LABELS[status],
        "version": order.version,
        "expected_delivery": _iso(order.expected_delivery),
        "delivery_window": delivery_window_text(
            now,
            order.expected_delivery,
            status,
            threshold_minutes=settings.delivery_window_display_threshold_minutes,
            tz_name=settings.display_timezone,
        ),
        "delivered_at": _iso(order.delivered_at),
        "hidden_from_admin": order.hidden_from_admin,
        "hidden_from_customer": order.hidden_from_customer,
        "created_at": _iso(order.created_at),
        "updated_at": _iso(order.updated_at),
    }


def serialize_orders(orders: list[Order], now: datetime | None = None) -> list[dict]:
    """Serialize a listing, skipping (and logging) rows that cannot be rendered."""
    now = now or utcnow()
    out = []
    for order in orders:
        try:
            out.append(serialize_order(order, now))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Skipping malformed order {getattr(order, 'id', '?')}: {e}")
    return out


def serialize_status_event(event: OrderStatusEvent) -> dict:
    return {
        "from_status": event.from_status,
        "to_status": event.to_status,
        "actor_role": event.actor_role,
        "actor_id": event.actor_id,
        "created_at": _iso(event.created_at),
    }
