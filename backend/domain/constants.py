"""
Domain constants used across services/routers.
"""
from domain.enums import OrderStatus

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

ACTIVE_STATUSES = frozenset({
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
})

# Customer-facing labels (admin console and notification titles)
STATUS_LABELS = {
    OrderStatus.PENDING: "Pending",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.OUT_FOR_DELIVERY: "On the Way",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}

# Short order reference shown to customers ("#00000042")
ORDER_REF_WIDTH = 8

# Allowed drift between total and subtotal + tax + shipping
TOTALS_TOLERANCE = 0.01
