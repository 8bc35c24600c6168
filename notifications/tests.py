"""
BRILLPRIME Notifications Tests
===============================

Tests for:
1. Notification writer (role default, best-effort bulk writes)
2. Send endpoint (admin only, unknown user)
3. Inbox listing, filtering and mark-as-read
"""

import uuid
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from core.models import User, UserRole
from notifications.models import Notification, NotificationType
from notifications.services import build_notification, create_notification, notify_best_effort


def make_user(email, role=UserRole.CONSUMER, **extra):
    return User.objects.create_user(email=email, password='testpass123', role=role, **extra)


class TestNotificationServices(TestCase):

    def setUp(self):
        self.driver = make_user('driver@brillprime.test', UserRole.DRIVER)

    def test_role_defaults_to_user_role(self):
        notification = create_notification(self.driver, 'Hello', 'Welcome aboard')

        self.assertEqual(notification.role, UserRole.DRIVER)
        self.assertEqual(notification.type, NotificationType.SYSTEM)
        self.assertEqual(notification.data, {})
        self.assertFalse(notification.is_read)

    def test_explicit_role_and_payload(self):
        notification = create_notification(
            self.driver, 'Order', 'Order #1234 updated',
            notification_type=NotificationType.ORDER,
            role='CONSUMER',
            data={'order_id': '1234'},
        )
        notification.refresh_from_db()
        self.assertEqual(notification.role, 'CONSUMER')
        self.assertEqual(notification.data, {'order_id': '1234'})

    def test_best_effort_writes_all(self):
        saved = notify_best_effort([
            build_notification(self.driver, 'A', 'first'),
            build_notification(self.driver, 'B', 'second'),
        ])
        self.assertEqual(len(saved), 2)
        self.assertEqual(Notification.objects.filter(user=self.driver).count(), 2)

    def test_best_effort_swallows_database_errors(self):
        with patch.object(Notification.objects, 'bulk_create', side_effect=DatabaseError('disk full')):
            saved = notify_best_effort([build_notification(self.driver, 'A', 'first')])

        self.assertEqual(saved, [])
        self.assertFalse(Notification.objects.exists())

    def test_best_effort_empty(self):
        self.assertEqual(notify_best_effort([]), [])


class TestSendNotificationView(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@brillprime.test', UserRole.ADMIN)
        self.consumer = make_user('consumer@brillprime.test')

    def test_admin_can_send(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(self.consumer.id),
            'title': 'Promo',
            'message': 'Free delivery this weekend',
            'type': 'system',
            'data': {'campaign': 'weekend'},
        }, format='json')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])

        notification = Notification.objects.get(pk=body['data']['notificationId'])
        self.assertEqual(notification.user, self.consumer)
        self.assertEqual(notification.type, NotificationType.SYSTEM)
        self.assertEqual(notification.role, UserRole.CONSUMER)
        self.assertEqual(notification.data, {'campaign': 'weekend'})

    def test_unknown_user(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(uuid.uuid4()),
            'title': 'Promo',
            'message': 'Hello',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'User not found')

    def test_unknown_type(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(self.consumer.id),
            'title': 'Promo',
            'message': 'Hello',
            'type': 'carrier-pigeon',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'INVALID_INPUT')

    def test_role_is_normalized(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(self.consumer.id),
            'title': 'Promo',
            'message': 'Hello',
            'role': 'merchant',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        notification = Notification.objects.get(pk=response.json()['data']['notificationId'])
        self.assertEqual(notification.role, UserRole.MERCHANT)

    def test_unknown_role(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(self.consumer.id),
            'title': 'Promo',
            'message': 'Hello',
            'role': 'pilot',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['code'], 'INVALID_INPUT')
        self.assertIn('role', body['error'])
        self.assertFalse(Notification.objects.exists())

    def test_non_admin_rejected(self):
        self.client.force_authenticate(user=self.consumer)
        response = self.client.post('/api/notifications/send/', {
            'userId': str(self.consumer.id),
            'title': 'Promo',
            'message': 'Hello',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'UNAUTHORIZED')
        self.assertFalse(Notification.objects.exists())


class TestNotificationInbox(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.consumer = make_user('consumer@brillprime.test')
        self.other = make_user('other@brillprime.test')

        self.unread = create_notification(
            self.consumer, 'Order', 'Order confirmed', notification_type=NotificationType.ORDER
        )
        self.read = create_notification(self.consumer, 'Welcome', 'Hi')
        self.read.is_read = True
        self.read.save()
        self.foreign = create_notification(self.other, 'Secret', 'Not yours')

        self.client.force_authenticate(user=self.consumer)

    def test_lists_only_own_notifications(self):
        response = self.client.get('/api/notifications/')

        self.assertEqual(response.status_code, 200)
        ids = {item['id'] for item in response.json()['results']}
        self.assertEqual(ids, {str(self.unread.id), str(self.read.id)})

    def test_filter_unread(self):
        response = self.client.get('/api/notifications/', {'is_read': 'false'})

        results = response.json()['results']
        self.assertEqual([item['id'] for item in results], [str(self.unread.id)])

    def test_filter_type(self):
        response = self.client.get('/api/notifications/', {'type': 'ORDER'})
        self.assertEqual(response.json()['count'], 1)

    def test_mark_read(self):
        response = self.client.post(f'/api/notifications/{self.unread.id}/read/')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['data']['is_read'])
        self.unread.refresh_from_db()
        self.assertTrue(self.unread.is_read)

    def test_cannot_read_someone_elses(self):
        response = self.client.post(f'/api/notifications/{self.foreign.id}/read/')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'NOT_FOUND')
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        response = self.client.get('/api/notifications/')
        self.assertEqual(response.json()['code'], 'UNAUTHORIZED')
