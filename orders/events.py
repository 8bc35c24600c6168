"""
ORDERS App - Real-time Event Broadcasting

Pushes order updates to WebSocket subscribers via Django Channels.
Broadcasting is best-effort: failures are logged and reported as False.
"""

import logging
from django.utils import timezone

logger = logging.getLogger(__name__)


def order_group_name(order_id) -> str:
    return f'order_{order_id}'


def driver_group_name(driver_id) -> str:
    return f'driver_{driver_id}'


def get_channel_layer():
    """Get the Django Channels layer (lazy import)."""
    from channels.layers import get_channel_layer as _get_channel_layer
    return _get_channel_layer()


def _send_group_event(group_name: str, event: dict) -> bool:
    """Send event to a channel group."""
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            logger.warning("[EVENTS] No channel layer configured")
            return False

        from asgiref.sync import async_to_sync
        async_to_sync(channel_layer.group_send)(group_name, event)
        return True
    except Exception as e:
        logger.error(f"[EVENTS] Failed to send to group {group_name}: {e}")
        return False


# ============================================
# ORDER EVENTS
# ============================================

def broadcast_order_status(order_id, new_status: str, message: str = "") -> bool:
    """
    Broadcast an order status change to clients tracking the order.
    """
    sent = _send_group_event(
        order_group_name(order_id),
        {
            'type': 'order_status_update',
            'order_id': str(order_id),
            'status': new_status,
            'timestamp': timezone.now().isoformat(),
            'message': message,
        }
    )

    if sent:
        logger.debug(f"[EVENTS] Broadcasted status change: {str(order_id)[:8]} -> {new_status}")
    return sent


def broadcast_driver_assignment(driver_id, order_id) -> bool:
    """
    Notify a driver's app that an order was assigned to them.
    """
    sent = _send_group_event(
        driver_group_name(driver_id),
        {
            'type': 'order_assigned',
            'order_id': str(order_id),
            'timestamp': timezone.now().isoformat(),
        }
    )

    if sent:
        logger.info(f"[EVENTS] Notified driver {str(driver_id)[:8]} of order {str(order_id)[:8]}")
    return sent
