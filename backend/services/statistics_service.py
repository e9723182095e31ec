"""
Statistics Service — sales figures for the admin console.

Periods: today, last 7 days, this calendar month, this calendar year.
Admin-hidden orders are excluded; confirmed revenue counts only orders whose
payment succeeded.
"""
import calendar
import logging
from collections import Counter
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, utcnow
from domain.enums import OrderStatus, PaymentMethod, PaymentStatus

logger = logging.getLogger(__name__)

TOP_ITEMS_LIMIT = 10


def _day_start(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _day_end(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999999)


def period_ranges(now: datetime) -> dict[str, tuple[str, datetime, datetime]]:
    """{key: (label, start, end)} for each reporting period."""
    last_day = calendar.monthrange(now.year, now.month)[1]
    return {
        "today": ("Today", _day_start(now), _day_end(now)),
        "weekly": ("Last 7 Days", _day_start(now - timedelta(days=7)), now),
        "monthly": (
            "This Month",
            _day_start(now.replace(day=1)),
            _day_end(now.replace(day=last_day)),
        ),
        "yearly": (
            "This Year",
            _day_start(now.replace(month=1, day=1)),
            _day_end(now.replace(month=12, day=31)),
        ),
    }


def summarize(orders: list[Order], label: str, start: datetime, end: datetime) -> dict:
    """Aggregate a set of orders falling in [start, end]."""
    confirmed = [o for o in orders if o.payment_status == PaymentStatus.SUCCEEDED.value]
    confirmed_revenue = sum(o.total or 0.0 for o in confirmed)
    total_revenue = sum(o.total or 0.0 for o in orders)

    statuses = Counter(o.status for o in orders)
    payment_statuses = Counter(o.payment_status for o in orders)
    payment_methods = Counter(o.payment_method for o in orders)

    items: dict[str, dict] = {}
    for o in orders:
        for it in o.items:
            name = it.name or "Unknown"
            row = items.setdefault(name, {"name": name, "quantity": 0, "revenue": 0.0, "orders": 0})
            row["quantity"] += it.quantity or 0
            row["revenue"] += (it.price or 0.0) * (it.quantity or 0)
            row["orders"] += 1
    top_items = sorted(items.values(), key=lambda r: r["quantity"], reverse=True)[:TOP_ITEMS_LIMIT]

    daily: dict[str, dict] = {}
    day = _day_start(start)
    while day <= end:
        key = day.strftime("%Y-%m-%d")
        daily[key] = {"date": key, "orders": 0, "revenue": 0.0}
        day += timedelta(days=1)
    for o in orders:
        key = o.created_at.strftime("%Y-%m-%d")
        if key in daily:
            daily[key]["orders"] += 1
            if o.payment_status == PaymentStatus.SUCCEEDED.value:
                daily[key]["revenue"] += o.total or 0.0

    return {
        "label": label,
        "period": {"start": start.isoformat(), "end": end.isoformat()},
        "summary": {
            "total_orders": len(orders),
            "total_revenue": round(total_revenue, 2),
            "confirmed_revenue": round(confirmed_revenue, 2),
            "avg_order_value": round(confirmed_revenue / len(orders), 2) if orders else 0.0,
            "total_items": sum(it.quantity or 0 for o in orders for it in o.items),
        },
        "status_breakdown": {s.value: statuses.get(s.value, 0) for s in OrderStatus},
        "payment_status_breakdown": {s.value: payment_statuses.get(s.value, 0) for s in PaymentStatus},
        "payment_method_breakdown": {m.value: payment_methods.get(m.value, 0) for m in PaymentMethod},
        "top_items": top_items,
        "daily_breakdown": list(daily.values()),
    }


async def sales_statistics(db: AsyncSession, now: datetime | None = None) -> dict:
    now = now or utcnow()
    ranges = period_ranges(now)
    earliest = min(start for _, start, _ in ranges.values())

    res = await db.execute(
        select(Order).where(
            Order.hidden_from_admin == False,  # noqa: E712
            Order.created_at >= earliest,
        )
    )
    orders = list(res.scalars().all())

    stats = {}
    for key, (label, start, end) in ranges.items():
        in_range = [o for o in orders if o.created_at and start <= o.created_at <= end]
        stats[key] = summarize(in_range, label, start, end)
    logger.debug(f"Computed sales statistics over {len(orders)} orders")
    return stats
