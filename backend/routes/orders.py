"""
Customer order endpoints — checkout handoff, order history, delivery confirmation, soft delete.

All endpoints act on the authenticated customer's own orders only.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import Pagination, pagination_params, require_customer
from domain.enums import ActorRole
from domain.responses import ERROR_RESPONSES, paginated_response, success_response
from middleware.auth import Actor
from models import OrderCreateRequest
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["orders"], responses=ERROR_RESPONSES)


@router.post("", status_code=201)
async def create_order(
    request: OrderCreateRequest,
    actor: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.create_order(db, customer_id=actor.id, request=request)
    await db.commit()
    await db.refresh(order)
    return success_response(data=order_service.serialize_order(order))


@router.get("")
async def list_my_orders(
    active_only: bool = False,
    page: Pagination = Depends(pagination_params),
    actor: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """Customer's order history, newest first (excludes orders they deleted)."""
    orders = await order_service.list_orders(
        db,
        role=ActorRole.CUSTOMER,
        customer_id=actor.id,
        active_only=active_only,
        limit=page["limit"],
        offset=page["offset"],
    )
    total = await order_service.count_orders(
        db, role=ActorRole.CUSTOMER, customer_id=actor.id, active_only=active_only
    )
    items = order_service.serialize_orders(orders)
    return paginated_response(
        items,
        limit=page["limit"],
        offset=page["offset"],
        total=total,
        skipped=len(orders) - len(items),
    )


@router.get("/{order_id}")
async def get_my_order(
    order_id: int,
    actor: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.get_customer_order(db, order_id, actor.id)
    return success_response(data=order_service.serialize_order(order))


@router.put("/{order_id}/delivered")
async def confirm_delivery(
    order_id: int,
    actor: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """Customer confirms receipt of an order that is out for delivery."""
    order = await order_service.confirm_delivery(db, order_id=order_id, customer_id=actor.id)
    await db.commit()
    return success_response(
        data=order_service.serialize_order(order),
        meta={"message": "Order marked as delivered successfully"},
    )


@router.delete("/{order_id}")
async def delete_my_order(
    order_id: int,
    actor: Actor = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """Remove a delivered or cancelled order from the customer's history."""
    order = await order_service.delete_order(
        db, order_id=order_id, actor_role=ActorRole.CUSTOMER, actor_id=actor.id
    )
    await db.commit()
    return success_response(
        data={
            "id": order.id,
            "hidden_from_customer": order.hidden_from_customer,
            "message": "Order deleted from your order history",
        }
    )
