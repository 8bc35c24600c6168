"""
Order lifecycle state machine.

The table below is the single source of truth for which status may follow
which. Adding or auditing a state is a change to ORDER_TRANSITIONS only.
"""

from typing import Dict, FrozenSet

from core.exceptions import InvalidTransition
from .models import OrderStatus


# Current status -> statuses it may move to
ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.CONFIRMED: frozenset({
        OrderStatus.PREPARING,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.PREPARING: frozenset({
        OrderStatus.READY,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.READY: frozenset({
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    }),
    OrderStatus.DELIVERED: frozenset(),  # terminal
    OrderStatus.CANCELLED: frozenset(),  # terminal
}


def _as_status(value):
    """Coerce a raw string to OrderStatus, None if unknown."""
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def allowed_transitions(status) -> FrozenSet[OrderStatus]:
    """Statuses reachable in one step from `status` (empty if unknown)."""
    current = _as_status(status)
    if current is None:
        return frozenset()
    return ORDER_TRANSITIONS[current]


def can_transition(status, new_status) -> bool:
    """True if `new_status` may directly follow `status`."""
    target = _as_status(new_status)
    if target is None:
        return False
    return target in allowed_transitions(status)


def is_terminal(status) -> bool:
    current = _as_status(status)
    return current is not None and not ORDER_TRANSITIONS[current]


def validate_transition(status, new_status):
    """
    Raise InvalidTransition unless `status -> new_status` is in the table.
    """
    if not can_transition(status, new_status):
        raise InvalidTransition(
            f"Invalid status transition from {status} to {new_status}"
        )
