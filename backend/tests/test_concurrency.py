"""
Tests for lost-update protection on status writes.

A concurrent writer is simulated with a Core UPDATE that bypasses the
session's identity map, so the ORM object the engine reads is stale.
"""
import pytest
from sqlalchemy import select, update, func

from db_models import Notification, Order, OrderStatusEvent
from domain.errors import ConcurrentModificationError, ConflictError
from services import order_service
from tests.conftest import advance


async def _write_behind_session(db_session, order_id, **values):
    await db_session.execute(
        update(Order)
        .where(Order.id == order_id)
        .values(version=Order.version + 1, **values)
        .execution_options(synchronize_session=False)
    )
    await db_session.commit()


@pytest.mark.asyncio
async def test_compare_and_set_succeeds_on_matching_snapshot(db_session, sample_order):
    swapped = await order_service.compare_and_set_status(
        db_session,
        order_id=sample_order.id,
        expected_status="pending",
        expected_version=0,
        values={"status": "processing"},
    )
    await db_session.commit()
    assert swapped is True

    row = (await db_session.execute(
        select(Order.status, Order.version).where(Order.id == sample_order.id)
    )).one()
    assert tuple(row) == ("processing", 1)


@pytest.mark.asyncio
@pytest.mark.parametrize("expected_status,expected_version", [
    ("processing", 0),
    ("pending", 3),
])
async def test_compare_and_set_rejects_stale_snapshot(db_session, sample_order, expected_status, expected_version):
    swapped = await order_service.compare_and_set_status(
        db_session,
        order_id=sample_order.id,
        expected_status=expected_status,
        expected_version=expected_version,
        values={"status": "cancelled"},
    )
    assert swapped is False


@pytest.mark.asyncio
async def test_lost_race_raises_and_writes_nothing(db_session, sample_order, admin_id):
    # rollback below expires sample_order, so keep the id as a plain value
    order_id = sample_order.id
    # another writer moves the order to cancelled behind our back
    await _write_behind_session(db_session, order_id, status="cancelled")
    assert sample_order.status == "pending"  # our copy is stale

    with pytest.raises(ConcurrentModificationError) as exc_info:
        await order_service.apply_transition(
            db_session,
            order_id=order_id,
            requested_status="processing",
            actor_role="admin",
            actor_id=admin_id,
        )
    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.code == "concurrent_modification"
    await db_session.rollback()

    assert (await db_session.execute(select(func.count(Notification.id)))).scalar() == 0
    assert (await db_session.execute(select(func.count(OrderStatusEvent.id)))).scalar() == 0

    order = await order_service.get_order(db_session, order_id)
    assert order.status == "cancelled"


@pytest.mark.asyncio
async def test_retry_after_refresh_sees_the_winner(db_session, sample_order, admin_id):
    order_id = sample_order.id
    await _write_behind_session(db_session, order_id, status="cancelled")

    with pytest.raises(ConcurrentModificationError):
        await order_service.apply_transition(
            db_session,
            order_id=order_id,
            requested_status="processing",
            actor_role="admin",
            actor_id=admin_id,
        )
    await db_session.rollback()

    # the retry reads fresh state and fails for the real reason
    with pytest.raises(ConflictError) as exc_info:
        await order_service.apply_transition(
            db_session,
            order_id=order_id,
            requested_status="processing",
            actor_role="admin",
            actor_id=admin_id,
        )
    assert exc_info.value.code == "order_terminal"


@pytest.mark.asyncio
async def test_stale_expected_version(db_session, sample_order, admin_id):
    await advance(db_session, sample_order.id, "processing")

    with pytest.raises(ConcurrentModificationError):
        await order_service.apply_transition(
            db_session,
            order_id=sample_order.id,
            requested_status="preparing",
            actor_role="admin",
            actor_id=admin_id,
            expected_version=0,
        )


@pytest.mark.asyncio
async def test_matching_expected_version(db_session, sample_order, admin_id):
    await advance(db_session, sample_order.id, "processing")

    order = await order_service.apply_transition(
        db_session,
        order_id=sample_order.id,
        requested_status="preparing",
        actor_role="admin",
        actor_id=admin_id,
        expected_version=1,
    )
    assert order.status == "preparing"
    assert order.version == 2


@pytest.mark.asyncio
async def test_cancel_and_confirm_race(db_session, sample_order, customer_id, admin_id):
    """Admin cancels while the customer is confirming: exactly one wins."""
    order_id = sample_order.id
    await advance(db_session, order_id, "outForDelivery")

    # customer's confirmation lands first, behind the admin's stale copy
    await _write_behind_session(db_session, order_id, status="delivered")

    with pytest.raises(ConcurrentModificationError):
        await order_service.apply_transition(
            db_session,
            order_id=order_id,
            requested_status="cancelled",
            actor_role="admin",
            actor_id=admin_id,
        )
    await db_session.rollback()

    order = await order_service.get_order(db_session, order_id)
    assert order.status == "delivered"
