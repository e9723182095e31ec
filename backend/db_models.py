"""
SQLAlchemy ORM models for the order lifecycle service.

Tables:
    orders               — one canonical record per checkout, with both soft-delete flags
    order_items          — line items snapshotted at creation (name/price/image)
    order_status_events  — append-only log of every status change
    notifications        — per-recipient mailbox entries
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Index,
)
from sqlalchemy.orm import relationship

from database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp (the store keeps all datetimes in UTC)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Order(Base):
    """
    A customer order and its lifecycle state.

    Mutated only by the transition engine (status + derived timestamps)
    and the visibility overlay (hidden_from_admin / hidden_from_customer).
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), nullable=False, index=True)

    # Contact / delivery address
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(254), nullable=False, index=True)
    phone = Column(String(32), nullable=False)
    address = Column(Text, nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20), nullable=False)

    # Amounts
    subtotal = Column(Float, nullable=False, default=0.0)
    tax = Column(Float, nullable=False, default=0.0)
    shipping = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)

    payment_method = Column(String(20), nullable=False)  # "cod" | "online"
    payment_status = Column(String(20), nullable=False, default="pending", index=True)  # pending | succeeded | failed

    status = Column(String(30), nullable=False, default="pending", index=True)
    version = Column(Integer, nullable=False, default=0)  # bumped on every status write
    expected_delivery = Column(DateTime, nullable=True)  # set on entering outForDelivery
    delivered_at = Column(DateTime, nullable=True)  # set iff status == delivered

    # Visibility overlay, independent per actor
    hidden_from_admin = Column(Boolean, nullable=False, default=False, index=True)
    hidden_from_customer = Column(Boolean, nullable=False, default=False, index=True)
    admin_hidden_at = Column(DateTime, nullable=True)
    customer_hidden_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        # Customer order history: filter by customer_id, order by created_at DESC
        Index("ix_orders_customer_created", "customer_id", "created_at"),
        # Admin dashboard + active counter
        Index("ix_orders_admin_status", "hidden_from_admin", "status"),
    )


class OrderItem(Base):
    """Line item with the catalog item snapshotted at checkout time."""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    price = Column(Float, nullable=False, default=0.0)
    image_url = Column(Text, nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=1)

    order = relationship("Order", back_populates="items")


class OrderStatusEvent(Base):
    """
    Append-only status change log.

    Written in the same transaction as the status update it records.
    """
    __tablename__ = "order_status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    from_status = Column(String(30), nullable=False)
    to_status = Column(String(30), nullable=False)
    actor_role = Column(String(20), nullable=False)  # "admin" | "customer"
    actor_id = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)


class Notification(Base):
    """
    Mailbox entry for a single recipient.

    Immutable except for status/read_at. Deleted only by its recipient.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    type = Column(String(30), nullable=False)  # status_update | query_resolved | admin_response
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    related_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    status = Column(String(10), nullable=False, default="unread")  # unread | read
    priority = Column(String(10), nullable=False, default="medium")  # low | medium | high
    created_at = Column(DateTime, default=utcnow, index=True)
    read_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # Mailbox listing: recipient's notifications newest first
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_recipient_status", "recipient_id", "status"),
    )
