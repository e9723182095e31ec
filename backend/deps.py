"""
Shared FastAPI dependencies.

Routers import DB session, role guards and pagination from here.
"""

from __future__ import annotations

from typing import TypedDict

from fastapi import Depends, Query

from domain.enums import ActorRole
from domain.errors import AuthorizationError
from middleware.auth import Actor, get_current_actor


class Pagination(TypedDict):
    limit: int
    offset: int


def pagination_params(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0, le=100_000),
) -> Pagination:
    return {"limit": limit, "offset": offset}


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Require an authenticated admin (restaurant staff)."""
    if actor.role != ActorRole.ADMIN:
        raise AuthorizationError("Admin role required for this endpoint.")
    return actor


async def require_customer(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Require an authenticated customer."""
    if actor.role != ActorRole.CUSTOMER:
        raise AuthorizationError("Customer role required for this endpoint.")
    return actor
