"""
ORDERS App - WebSocket Consumers for Real-time Tracking

Clients connect to: ws://host/ws/orders/<order_id>/

Events received:
- order_status_update: Status changed (PENDING -> CONFIRMED -> ... -> DELIVERED)
"""

import logging
from typing import Optional

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .events import order_group_name

logger = logging.getLogger(__name__)


class OrderTrackingConsumer(AsyncJsonWebsocketConsumer):
    """WebSocket consumer for tracking a specific order."""

    async def connect(self):
        self.order_id = self.scope['url_route']['kwargs']['order_id']
        self.room_group_name = order_group_name(self.order_id)

        status = await self.get_order_status()
        if status is None:
            await self.close(code=4004)
            return

        await self.channel_layer.group_add(
            self.room_group_name,
            self.channel_name
        )

        await self.accept()

        # Send initial state
        await self.send_json({
            'type': 'connection_established',
            'order_id': self.order_id,
            'status': status,
        })

        logger.info(f"[WS] Client connected to order {self.order_id[:8]}")

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(
            self.room_group_name,
            self.channel_name
        )
        logger.info(f"[WS] Client disconnected from order {self.order_id[:8]}")

    async def receive_json(self, content):
        """Handle incoming WebSocket messages from clients."""
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    # ============================================
    # Event Handlers (called via channel_layer.group_send)
    # ============================================

    async def order_status_update(self, event):
        await self.send_json({
            'type': 'status_update',
            'order_id': event['order_id'],
            'status': event['status'],
            'timestamp': event['timestamp'],
            'message': event.get('message', ''),
        })

    # ============================================
    # Database helpers
    # ============================================

    @database_sync_to_async
    def get_order_status(self) -> Optional[str]:
        from django.core.exceptions import ValidationError
        from orders.models import Order

        try:
            return (
                Order.objects.filter(pk=self.order_id)
                .values_list('status', flat=True)
                .first()
            )
        except ValidationError:
            return None
