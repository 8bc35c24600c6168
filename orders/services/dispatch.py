"""
ORDERS App - Driver assignment for BRILLPRIME

Picks a driver for an order: the nearest active driver to the delivery
address among every driver with a known position, otherwise the first
active driver.
"""

import logging
from typing import List, Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError

from core.exceptions import InvalidTransition, NotFound, UpstreamFailure
from core.models import UserRole
from notifications.models import NotificationType
from notifications.services import build_notification, notify_best_effort
from orders.events import broadcast_driver_assignment
from orders.models import Order
from orders.services.pricing import DeliveryFeeCalculator
from orders.services.status import get_order
from orders.transitions import is_terminal

logger = logging.getLogger(__name__)


# ============================================
# DISPATCH CONFIGURATION
# ============================================

DRIVER_SEARCH_LIMIT = 10  # Fallback candidates when no position is known


def find_located_drivers() -> List:
    """Active DRIVER users with a last known position."""
    User = get_user_model()
    return list(
        User.objects.filter(
            role=UserRole.DRIVER,
            is_active=True,
            last_latitude__isnull=False,
            last_longitude__isnull=False,
        )
    )


def find_available_drivers(limit: Optional[int] = None) -> List:
    """Active DRIVER users, oldest accounts first."""
    User = get_user_model()
    limit = limit or getattr(settings, 'DRIVER_SEARCH_LIMIT', DRIVER_SEARCH_LIMIT)
    return list(
        User.objects.filter(role=UserRole.DRIVER, is_active=True)
        .order_by('date_joined')[:limit]
    )


def find_candidate_drivers(order: Order) -> List:
    """
    Drivers to choose from for `order`.

    Every located driver when the order has a delivery address, so distance
    is compared across the whole fleet. Otherwise (or when nobody has a
    position yet) the oldest DRIVER_SEARCH_LIMIT active drivers.
    """
    if order.delivery_location is not None:
        located = find_located_drivers()
        if located:
            return located
    return find_available_drivers()


def select_driver(order: Order, drivers: List):
    """
    Nearest driver (haversine) to the delivery address among drivers with a
    known position; the first candidate when distance cannot be compared.
    """
    destination = order.delivery_location
    located = [driver for driver in drivers if driver.has_location]

    if destination is None or not located:
        return drivers[0]

    return min(
        located,
        key=lambda driver: DeliveryFeeCalculator.haversine_distance(
            (driver.last_latitude, driver.last_longitude), destination
        ),
    )


def assign_driver(order_id, actor=None):
    """
    Assign a driver to an order without changing its status.

    Returns:
        The assigned driver (User)

    Raises:
        NotFound: order missing or no driver available
        InvalidTransition: order already delivered or cancelled
        UpstreamFailure: the assignment write failed
    """
    order = get_order(order_id)

    if is_terminal(order.status):
        raise InvalidTransition(f"Cannot assign a driver to a {order.status} order")

    drivers = find_candidate_drivers(order)
    if not drivers:
        logger.warning(f"[DISPATCH] No drivers available for order {order.short_id}")
        raise NotFound("No available drivers found")

    driver = select_driver(order, drivers)

    order.driver = driver
    try:
        order.save(update_fields=['driver', 'updated_at'])
    except DatabaseError as e:
        logger.error(f"[DISPATCH] Failed to assign driver to {order.short_id}: {e}")
        raise UpstreamFailure("Failed to assign driver")

    logger.info(
        f"[DISPATCH] Order {order.short_id} assigned to driver {str(driver.pk)[:8]}"
        f" by {getattr(actor, 'pk', 'system')}"
    )

    notify_best_effort([
        build_notification(
            driver,
            title='New Delivery Request',
            message='You have been assigned a new delivery order',
            notification_type=NotificationType.DELIVERY,
            role=UserRole.DRIVER,
            data={'order_id': str(order.id)},
        )
    ])
    broadcast_driver_assignment(driver.pk, order.id)

    return driver
