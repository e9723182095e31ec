"""
Admin endpoints — order dashboard, status changes, soft delete, statistics.

The dashboard polls GET /admin/orders and /admin/orders/active-count.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, pagination_params, require_admin
from domain.enums import ActorRole
from domain.responses import ERROR_RESPONSES, paginated_response, success_response
from middleware.auth import Actor
from models import StatusUpdateRequest
from services import order_service, statistics_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"], responses=ERROR_RESPONSES)


@router.get("/orders")
async def list_all_orders(
    active_only: bool = False,
    page: Pagination = Depends(pagination_params),
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All orders not hidden from the admin panel, newest first."""
    orders = await order_service.list_orders(
        db,
        role=ActorRole.ADMIN,
        active_only=active_only,
        limit=page["limit"],
        offset=page["offset"],
    )
    total = await order_service.count_orders(db, role=ActorRole.ADMIN, active_only=active_only)
    active = await order_service.count_active_orders(db)
    items = order_service.serialize_orders(orders)
    return paginated_response(
        items,
        limit=page["limit"],
        offset=page["offset"],
        total=total,
        skipped=len(orders) - len(items),
        extra_meta={"active_count": active},
    )


@router.get("/orders/active-count")
async def active_order_count(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await order_service.count_active_orders(db)
    return success_response(data={"active_count": count})


@router.put("/orders/{order_id}/status")
async def set_order_status(
    order_id: int,
    request: StatusUpdateRequest,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.apply_transition(
        db,
        order_id=order_id,
        requested_status=request.status,
        actor_role=ActorRole.ADMIN,
        actor_id=actor.id,
        expected_version=request.expected_version,
    )
    await db.commit()
    return success_response(
        data=order_service.serialize_order(order),
        meta={"message": "Order updated successfully"},
    )


@router.delete("/orders/{order_id}")
async def delete_order(
    order_id: int,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Hide an order from the admin panel. The customer's view is not affected."""
    order = await order_service.delete_order(
        db, order_id=order_id, actor_role=ActorRole.ADMIN, actor_id=actor.id
    )
    await db.commit()
    return success_response(
        data={
            "id": order.id,
            "hidden_from_admin": order.hidden_from_admin,
            "message": "Order deleted from admin panel",
        }
    )


@router.get("/orders/{order_id}/history")
async def order_history(
    order_id: int,
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    events = await order_service.get_order_history(db, order_id)
    return success_response(
        data=[order_service.serialize_status_event(e) for e in events],
        meta={"total": len(events)},
    )


@router.get("/statistics")
async def sales_statistics(
    actor: Actor = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await statistics_service.sales_statistics(db)
    return success_response(data=stats)
