"""
BRILLPRIME Core Tests
======================

Tests for:
1. Custom User Model (creation, roles)
2. Error envelope handler
3. Health endpoints
"""

import uuid
from unittest.mock import patch

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from django.test import SimpleTestCase, TestCase
from rest_framework import exceptions

from core.exceptions import (
    BrillPrimeError,
    InvalidInput,
    InvalidTransition,
    NotFound,
    Unauthorized,
    UpstreamFailure,
    envelope_exception_handler,
    to_brillprime_error,
)
from core.models import User, UserRole


class TestUserModel(TestCase):
    """Tests for the custom User model."""

    def setUp(self):
        self.driver = User.objects.create_user(
            email='Driver@BrillPrime.test',
            password='testpass123',
            role=UserRole.DRIVER,
            full_name='Driver Test',
        )

    def test_user_creation_with_email(self):
        self.assertEqual(self.driver.email, 'Driver@brillprime.test')
        self.assertTrue(self.driver.check_password('testpass123'))

    def test_user_uuid_primary_key(self):
        self.assertIsInstance(self.driver.id, uuid.UUID)

    def test_default_role_is_consumer(self):
        user = User.objects.create_user(email='consumer@brillprime.test')
        self.assertEqual(user.role, UserRole.CONSUMER)
        self.assertFalse(user.has_usable_password())

    def test_email_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='')

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(email='root@brillprime.test', password='x')
        self.assertEqual(admin.role, UserRole.ADMIN)
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_admin_role)

    def test_role_properties(self):
        self.assertFalse(self.driver.is_admin_role)
        self.assertFalse(self.driver.has_location)

        self.driver.last_latitude = 6.52
        self.driver.last_longitude = 3.37
        self.assertTrue(self.driver.has_location)


class TestErrorEnvelope(SimpleTestCase):

    def test_taxonomy_codes(self):
        self.assertEqual(Unauthorized().code, 'UNAUTHORIZED')
        self.assertEqual(InvalidInput().code, 'INVALID_INPUT')
        self.assertEqual(InvalidTransition().code, 'INVALID_TRANSITION')
        self.assertEqual(NotFound().code, 'NOT_FOUND')
        self.assertEqual(UpstreamFailure().code, 'UPSTREAM_FAILURE')
        for error in (Unauthorized(), InvalidInput(), NotFound()):
            self.assertIsInstance(error, BrillPrimeError)

    def test_default_and_custom_messages(self):
        self.assertEqual(str(Unauthorized()), 'Unauthorized')
        self.assertEqual(NotFound('Order not found').message, 'Order not found')

    def test_domain_error_response(self):
        response = envelope_exception_handler(NotFound('Order not found'), {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {
            'success': False,
            'error': 'Order not found',
            'code': 'NOT_FOUND',
        })

    def test_auth_errors_map_to_unauthorized(self):
        for exc in (
            exceptions.NotAuthenticated(),
            exceptions.AuthenticationFailed('Token expired'),
            exceptions.PermissionDenied(),
            DjangoPermissionDenied(),
        ):
            self.assertIsInstance(to_brillprime_error(exc), Unauthorized)

    def test_validation_errors_are_flattened(self):
        exc = exceptions.ValidationError({
            'orderId': ['Must be a valid UUID.'],
            'non_field_errors': ['Something else.'],
        })
        error = to_brillprime_error(exc)

        self.assertIsInstance(error, InvalidInput)
        self.assertEqual(error.message, 'orderId: Must be a valid UUID.; Something else.')

    def test_http404_maps_to_not_found(self):
        self.assertIsInstance(to_brillprime_error(Http404()), NotFound)

    def test_unexpected_errors_propagate(self):
        self.assertIsNone(envelope_exception_handler(RuntimeError('boom'), {}))


class TestHealthEndpoints(TestCase):

    def test_health_endpoint_accessible(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['service'], 'brillprime')

    def test_readiness_endpoint(self):
        response = self.client.get('/health/ready/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['checks']['database']['status'], 'healthy')
        self.assertEqual(data['checks']['cache']['status'], 'healthy')

    @patch('core.health.cache')
    def test_readiness_unavailable_cache(self, mock_cache):
        mock_cache.set.side_effect = ConnectionError('redis down')

        response = self.client.get('/health/ready/')

        self.assertEqual(response.status_code, 503)
        data = response.json()
        self.assertEqual(data['status'], 'unhealthy')
        self.assertEqual(data['checks']['cache'], {'status': 'unhealthy', 'error': 'redis down'})
        self.assertEqual(data['checks']['database']['status'], 'healthy')

    @patch('core.health.cache')
    def test_readiness_cache_mismatch(self, mock_cache):
        mock_cache.get.return_value = 'stale'

        response = self.client.get('/health/ready/')

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()['checks']['cache']['error'], 'Cache read/write mismatch')

    def test_api_root_is_public(self):
        response = self.client.get('/api/')
        self.assertEqual(response.status_code, 200)
        self.assertIn('orders', response.json()['endpoints'])
