"""
Order status updates for BRILLPRIME

Validates the requested transition, persists it, then notifies the
consumer (and the driver assigned by the transition) and pushes the change
to realtime subscribers. Notifications and broadcasts are best-effort.

There is no row locking: two concurrent updates of the same order race and
the last write wins.
"""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils import timezone

from core.exceptions import InvalidInput, NotFound, UpstreamFailure
from core.models import UserRole
from notifications.models import NotificationType
from notifications.services import build_notification, notify_best_effort
from orders.events import broadcast_order_status
from orders.models import Order, OrderStatus
from orders.transitions import validate_transition

logger = logging.getLogger(__name__)


def get_order(order_id) -> Order:
    """Load an order or raise NotFound (malformed ids count as missing)."""
    try:
        return Order.objects.select_related('consumer', 'driver').get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Order not found")


def get_driver(driver_id):
    """Load an active DRIVER user or raise NotFound."""
    User = get_user_model()
    try:
        return User.objects.get(pk=driver_id, role=UserRole.DRIVER, is_active=True)
    except (User.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFound("Driver not found")


def describe_status(status: str) -> str:
    """OUT_FOR_DELIVERY -> 'out for delivery'."""
    return status.replace('_', ' ').lower()


def update_order_status(
    order_id,
    new_status: str,
    actor=None,
    driver_id=None,
    notes: Optional[str] = None
) -> Order:
    """
    Move an order to `new_status`.

    Args:
        order_id: Order UUID
        new_status: Requested OrderStatus value
        actor: Authenticated user performing the update (for the log)
        driver_id: Driver to assign, used only when moving to OUT_FOR_DELIVERY
        notes: Optional free-text note stored on the order

    Returns:
        The updated Order

    Raises:
        NotFound: order or driver missing
        InvalidTransition: transition not in the table
        UpstreamFailure: the status write failed
    """
    if not new_status:
        raise InvalidInput("newStatus is required")

    order = get_order(order_id)
    previous_status = order.status
    validate_transition(previous_status, new_status)

    update_fields = ['status', 'updated_at']
    assigned_driver = None

    if new_status == OrderStatus.OUT_FOR_DELIVERY and driver_id:
        assigned_driver = get_driver(driver_id)
        order.driver = assigned_driver
        update_fields.append('driver')

    if new_status == OrderStatus.DELIVERED:
        order.delivered_at = timezone.now()
        update_fields.append('delivered_at')

    if notes:
        order.notes = notes
        update_fields.append('notes')

    order.status = new_status
    try:
        order.save(update_fields=update_fields)
    except DatabaseError as e:
        logger.error(f"[ORDERS] Failed to persist status for {order.short_id}: {e}")
        raise UpstreamFailure("Failed to update order status")

    logger.info(
        f"[ORDERS] Order {order.short_id}: {previous_status} -> {new_status}"
        f" by {getattr(actor, 'pk', 'system')}"
    )

    _notify_status_change(order, new_status, assigned_driver)
    broadcast_order_status(order.id, new_status, message=f"Order is now {describe_status(new_status)}")

    return order


def _notify_status_change(order: Order, new_status: str, assigned_driver=None):
    """Consumer notification, plus one for a driver assigned by this transition."""
    payload = {'order_id': str(order.id), 'status': new_status}

    notifications = [
        build_notification(
            order.consumer,
            title='Order Status Updated',
            message=f"Your order #{order.short_id} is now {describe_status(new_status)}",
            notification_type=NotificationType.ORDER,
            role=UserRole.CONSUMER,
            data=payload,
        )
    ]

    if assigned_driver is not None:
        notifications.append(
            build_notification(
                assigned_driver,
                title='New Delivery Assignment',
                message=f"You have been assigned to order #{order.short_id}",
                notification_type=NotificationType.DELIVERY,
                role=UserRole.DRIVER,
                data=payload,
            )
        )

    return notify_best_effort(notifications)
