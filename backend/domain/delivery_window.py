"""
Delivery-window presentation rule.

Only the expected_delivery timestamp is stored; the text shown to customers
is derived from it at read time so it never goes stale.
"""
import math
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from domain.enums import OrderStatus

HALF_AN_HOUR_TEXT = "within half an hour"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_calendar_date(value: datetime, tz_name: str = "UTC") -> str:
    """Render a timestamp as e.g. '19 October 2026' in the given timezone."""
    tz = timezone.utc if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    local = _as_utc(value).astimezone(tz)
    return f"{local.day} {local.strftime('%B %Y')}"


def delivery_window_text(
    now: datetime,
    expected_delivery: datetime | None,
    status: OrderStatus | str,
    *,
    threshold_minutes: int = 30,
    tz_name: str = "UTC",
) -> str | None:
    """
    Text describing when an order out for delivery should arrive.

    Returns None unless the order is outForDelivery with a timestamp.
    Never renders a negative or past-tense value.
    """
    if OrderStatus(status) != OrderStatus.OUT_FOR_DELIVERY or expected_delivery is None:
        return None

    remaining = math.floor((_as_utc(expected_delivery) - _as_utc(now)).total_seconds() / 60)
    if remaining <= 0:
        return HALF_AN_HOUR_TEXT
    if remaining <= threshold_minutes:
        unit = "minute" if remaining == 1 else "minutes"
        return f"within {remaining} {unit}"
    return format_calendar_date(expected_delivery, tz_name)
