"""
Actor authentication helpers.

Tokens are issued by the upstream auth layer; this service only verifies
them. A token carries:
    sub  — actor id (customer id or admin id)
    role — "admin" | "customer"

issue_access_token() exists for tests and local tooling.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from fastapi import Header
from typing import Optional

import jwt

from config import settings
from domain.enums import ActorRole
from domain.errors import DomainError, UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Verified caller identity."""
    id: str
    role: ActorRole


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _require_secret() -> str:
    if not settings.jwt_secret:
        raise DomainError(
            "Server auth misconfigured (JWT secret missing).",
            status_code=500,
        )
    return settings.jwt_secret


def decode_access_token(token: str) -> dict:
    secret = _require_secret()
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")


def issue_access_token(*, actor_id: str, role: ActorRole | str, ttl_minutes: int | None = None) -> str:
    now = _now_utc()
    ttl = ttl_minutes if ttl_minutes is not None else settings.jwt_access_ttl_minutes
    exp = now.replace(microsecond=0) + timedelta(minutes=ttl)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": actor_id,
        "role": ActorRole(role).value,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, _require_secret(), algorithm="HS256")


async def get_current_actor(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Actor:
    """FastAPI dependency — resolves the bearer token into an Actor."""
    token = _parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")

    payload = decode_access_token(token)
    try:
        role = ActorRole(payload.get("role"))
    except ValueError:
        logger.warning(f"Token for {payload.get('sub')} carries unknown role {payload.get('role')!r}")
        raise UnauthorizedError("Access token carries an unknown role.")
    return Actor(id=str(payload["sub"]), role=role)
