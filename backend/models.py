"""
Pydantic models for request validation.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from domain.enums import OrderStatus, PaymentMethod


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or camelCase alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Order Models ────────────────────────────────────────────────────

class OrderItemIn(ApiBase):
    """Catalog item snapshot supplied at checkout."""
    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., ge=0)
    image_url: str = Field(default="", alias="imageUrl", max_length=2000)
    quantity: int = Field(..., ge=1, le=100)


class OrderCreateRequest(ApiBase):
    """Request model for checkout handoff (cart arithmetic happens upstream)."""
    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: str = Field(..., min_length=5, max_length=32)
    address: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., alias="zipCode", min_length=1, max_length=20)
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    subtotal: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    shipping: float = Field(default=0.0, ge=0)
    total: float = Field(..., ge=0)
    items: List[OrderItemIn] = Field(..., min_length=1)


class StatusUpdateRequest(ApiBase):
    """Request model for admin status changes."""
    status: OrderStatus
    expected_version: Optional[int] = Field(
        default=None,
        alias="expectedVersion",
        ge=0,
        description="Version the caller last saw; rejected with 409 if stale",
    )
