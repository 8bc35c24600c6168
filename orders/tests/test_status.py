"""
Tests for order status updates: persistence, notifications, broadcast.
"""

import uuid
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from core.exceptions import InvalidInput, InvalidTransition, NotFound, UpstreamFailure
from core.models import UserRole
from notifications.models import Notification, NotificationType
from orders.models import Order, OrderStatus
from orders.services.status import describe_status, update_order_status
from orders.tests.helpers import make_order, make_user


class TestUpdateOrderStatus(TestCase):

    def setUp(self):
        self.consumer = make_user(UserRole.CONSUMER)
        self.merchant = make_user(UserRole.MERCHANT)
        self.driver = make_user(UserRole.DRIVER, full_name='Tunde Driver')
        self.order = make_order(self.consumer, merchant=self.merchant)

    def test_valid_transition_is_persisted(self):
        update_order_status(self.order.id, OrderStatus.CONFIRMED, actor=self.merchant)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)

    def test_consumer_is_notified(self):
        update_order_status(self.order.id, OrderStatus.CONFIRMED, actor=self.merchant)

        notification = Notification.objects.get(user=self.consumer)
        self.assertEqual(notification.title, 'Order Status Updated')
        self.assertEqual(notification.type, NotificationType.ORDER)
        self.assertEqual(notification.role, UserRole.CONSUMER)
        self.assertEqual(notification.data, {
            'order_id': str(self.order.id),
            'status': 'CONFIRMED',
        })
        self.assertIn(self.order.short_id, notification.message)
        self.assertTrue(notification.message.endswith('is now confirmed'))

    def test_invalid_transition_changes_nothing(self):
        with self.assertRaises(InvalidTransition):
            update_order_status(self.order.id, OrderStatus.DELIVERED, actor=self.merchant)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PENDING)
        self.assertFalse(Notification.objects.exists())

    def test_preparing_to_delivered_rejected(self):
        self.order.status = OrderStatus.PREPARING
        self.order.save()

        with self.assertRaises(InvalidTransition):
            update_order_status(self.order.id, OrderStatus.DELIVERED)

    def test_out_for_delivery_assigns_driver(self):
        self.order.status = OrderStatus.READY
        self.order.save()

        update_order_status(
            self.order.id, OrderStatus.OUT_FOR_DELIVERY,
            actor=self.merchant, driver_id=self.driver.id
        )

        self.order.refresh_from_db()
        self.assertEqual(self.order.driver, self.driver)

        driver_notification = Notification.objects.get(user=self.driver)
        self.assertEqual(driver_notification.title, 'New Delivery Assignment')
        self.assertEqual(driver_notification.type, NotificationType.DELIVERY)
        self.assertEqual(driver_notification.role, UserRole.DRIVER)

        consumer_notification = Notification.objects.get(user=self.consumer)
        self.assertIn('out for delivery', consumer_notification.message)

    def test_driver_ignored_for_other_transitions(self):
        update_order_status(self.order.id, OrderStatus.CONFIRMED, driver_id=self.driver.id)

        self.order.refresh_from_db()
        self.assertIsNone(self.order.driver)
        self.assertEqual(Notification.objects.count(), 1)

    def test_unknown_driver(self):
        self.order.status = OrderStatus.PREPARING
        self.order.save()

        with self.assertRaises(NotFound):
            update_order_status(self.order.id, OrderStatus.OUT_FOR_DELIVERY, driver_id=uuid.uuid4())

        # Consumer account is not a driver either
        with self.assertRaises(NotFound):
            update_order_status(
                self.order.id, OrderStatus.OUT_FOR_DELIVERY, driver_id=self.consumer.id
            )

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.PREPARING)

    def test_delivered_sets_timestamp(self):
        self.order.status = OrderStatus.OUT_FOR_DELIVERY
        self.order.driver = self.driver
        self.order.save()

        update_order_status(self.order.id, OrderStatus.DELIVERED, actor=self.driver)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.DELIVERED)
        self.assertIsNotNone(self.order.delivered_at)

    def test_notes_are_stored(self):
        update_order_status(self.order.id, OrderStatus.CANCELLED, notes='Customer unreachable')

        self.order.refresh_from_db()
        self.assertEqual(self.order.notes, 'Customer unreachable')

    def test_missing_order(self):
        with self.assertRaises(NotFound):
            update_order_status(uuid.uuid4(), OrderStatus.CONFIRMED)
        with self.assertRaises(NotFound):
            update_order_status('not-a-uuid', OrderStatus.CONFIRMED)

    def test_missing_status(self):
        with self.assertRaises(InvalidInput):
            update_order_status(self.order.id, '')

    def test_terminal_orders_are_frozen(self):
        update_order_status(self.order.id, OrderStatus.CANCELLED)

        for target in OrderStatus.values:
            with self.assertRaises(InvalidTransition):
                update_order_status(self.order.id, target)

    def test_notification_failure_keeps_status(self):
        """Notification writes are best-effort."""
        with patch(
            'notifications.services.Notification.objects.bulk_create',
            side_effect=DatabaseError('notifications table locked')
        ):
            order = update_order_status(self.order.id, OrderStatus.CONFIRMED)

        self.assertEqual(order.status, OrderStatus.CONFIRMED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CONFIRMED)
        self.assertFalse(Notification.objects.exists())

    def test_database_failure_raises_upstream(self):
        with patch.object(Order, 'save', side_effect=DatabaseError('connection lost')):
            with self.assertRaises(UpstreamFailure):
                update_order_status(self.order.id, OrderStatus.CONFIRMED)

        self.assertFalse(Notification.objects.exists())

    def test_status_change_is_broadcast(self):
        with patch('orders.services.status.broadcast_order_status') as mock_broadcast:
            update_order_status(self.order.id, OrderStatus.CONFIRMED)

        mock_broadcast.assert_called_once()
        args, kwargs = mock_broadcast.call_args
        self.assertEqual(args[0], self.order.id)
        self.assertEqual(args[1], OrderStatus.CONFIRMED)
        self.assertEqual(kwargs['message'], 'Order is now confirmed')

    def test_full_lifecycle(self):
        path = [
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
        ]
        for status in path:
            update_order_status(self.order.id, status, driver_id=self.driver.id)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.DELIVERED)
        self.assertEqual(self.order.driver, self.driver)
        self.assertEqual(Notification.objects.filter(user=self.consumer).count(), len(path))
        self.assertEqual(Notification.objects.filter(user=self.driver).count(), 1)


class TestDescribeStatus(TestCase):

    def test_all_underscores_replaced(self):
        self.assertEqual(describe_status('OUT_FOR_DELIVERY'), 'out for delivery')
        self.assertEqual(describe_status('PENDING'), 'pending')
