"""
Role-aware order transition table.

A transition is permitted iff its (from_status, to_status, actor_role) triple
is in TRANSITIONS. Nothing else in the codebase decides which actor may move
an order where.

    admin:    pending → processing → preparing → outForDelivery (forward, may skip)
              any non-terminal status → cancelled
    customer: outForDelivery → delivered (ConfirmDelivery)
"""
from domain.constants import TERMINAL_STATUSES
from domain.enums import ActorRole, OrderStatus

_ADMIN_FORWARD = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.PREPARING,
    OrderStatus.OUT_FOR_DELIVERY,
)

Transition = tuple[OrderStatus, OrderStatus, ActorRole]

TRANSITIONS: frozenset[Transition] = frozenset(
    {
        (src, dst, ActorRole.ADMIN)
        for i, src in enumerate(_ADMIN_FORWARD)
        for dst in _ADMIN_FORWARD[i + 1:]
    }
    | {(src, OrderStatus.CANCELLED, ActorRole.ADMIN) for src in _ADMIN_FORWARD}
    | {(OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED, ActorRole.CUSTOMER)}
)


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def is_allowed(src: OrderStatus, dst: OrderStatus, role: ActorRole) -> bool:
    return (src, dst, role) in TRANSITIONS


def role_can_target(dst: OrderStatus, role: ActorRole) -> bool:
    """True if ``role`` may ever move an order into ``dst`` from some status."""
    return any(t[1] == dst and t[2] == role for t in TRANSITIONS)


def reachable_from(src: OrderStatus, role: ActorRole) -> set[OrderStatus]:
    """Statuses ``role`` can move an order into directly from ``src``."""
    return {t[1] for t in TRANSITIONS if t[0] == src and t[2] == role}
