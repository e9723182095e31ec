"""
Tests for SQLAlchemy ORM models.

Tests: column defaults, item relationship, status-event and notification rows.
"""
import pytest
from sqlalchemy import select

from db_models import Notification, Order, OrderItem, OrderStatusEvent, utcnow


def _order(**overrides) -> Order:
    values = dict(
        customer_id="cust_0001",
        first_name="Asha",
        last_name="Rao",
        email="asha@example.com",
        phone="+91 98450 00000",
        address="12 MG Road",
        city="Bengaluru",
        zip_code="560001",
        payment_method="cod",
    )
    values.update(overrides)
    return Order(**values)


class TestOrderModel:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_defaults(self, db_session):
        order = _order()
        db_session.add(order)
        await db_session.commit()

        assert order.id is not None
        assert order.status == "pending"
        assert order.version == 0
        assert order.payment_status == "pending"
        assert order.hidden_from_admin is False
        assert order.hidden_from_customer is False
        assert order.expected_delivery is None
        assert order.delivered_at is None
        assert order.created_at is not None
        assert order.total == 0.0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_items_are_loaded_in_insertion_order(self, db_session):
        order = _order(items=[
            OrderItem(name="Dal Makhani", price=180.0, quantity=1),
            OrderItem(name="Jeera Rice", price=120.0, quantity=2),
        ])
        db_session.add(order)
        await db_session.commit()
        db_session.expunge_all()

        loaded = (await db_session.execute(select(Order).where(Order.id == order.id))).scalar_one()
        assert [i.name for i in loaded.items] == ["Dal Makhani", "Jeera Rice"]
        assert loaded.items[0].image_url == ""
        assert loaded.items[1].order_id == order.id

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_updated_at_moves_on_orm_update(self, db_session):
        order = _order()
        db_session.add(order)
        await db_session.commit()
        before = order.updated_at

        order.hidden_from_admin = True
        await db_session.commit()
        assert order.updated_at >= before


class TestStatusEventModel:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_event_row(self, db_session):
        order = _order()
        db_session.add(order)
        await db_session.flush()

        event = OrderStatusEvent(
            order_id=order.id,
            from_status="pending",
            to_status="processing",
            actor_role="admin",
            actor_id="admin_0001",
        )
        db_session.add(event)
        await db_session.commit()

        assert event.id is not None
        assert event.created_at is not None


class TestNotificationModel:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_defaults(self, db_session):
        n = Notification(
            recipient_id="cust_0001",
            type="status_update",
            title="Order Processing",
            message="Your order #00000001 status is now Processing.",
        )
        db_session.add(n)
        await db_session.commit()

        assert n.status == "unread"
        assert n.priority == "medium"
        assert n.related_order_id is None
        assert n.read_at is None
        assert n.created_at is not None


@pytest.mark.unit
def test_utcnow_is_naive():
    assert utcnow().tzinfo is None


@pytest.mark.unit
@pytest.mark.parametrize("url,expected", [
    ("sqlite:///./data/orders.db", "sqlite+aiosqlite:///./data/orders.db"),
    ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ("postgresql+asyncpg://u:p@db/orders", "postgresql+asyncpg://u:p@db/orders"),
])
def test_async_database_url(url, expected):
    from database import async_database_url
    assert async_database_url(url) == expected
