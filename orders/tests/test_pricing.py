"""
BRILLPRIME Delivery Fee Tests
==============================

Tests for:
1. Haversine distance
2. Fee formula (base, distance, surge, free delivery)
3. Peak window evaluation in local time
4. Input validation (coordinates, order value)
"""

import math
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal
from django.test import SimpleTestCase, override_settings
from django.utils import timezone

from core.exceptions import InvalidInput
from orders.services.pricing import (
    DeliveryFeeCalculator,
    calculate_delivery_fee,
    parse_location,
    parse_order_value,
)


def local_time(hour, minute=0):
    """Aware datetime at `hour` in the project time zone."""
    return timezone.make_aware(datetime(2025, 3, 14, hour, minute))


NON_PEAK = local_time(11)
PEAK = local_time(18, 30)

LAGOS_ISLAND = {'latitude': 6.4541, 'longitude': 3.3947}
IKEJA = {'latitude': 6.6018, 'longitude': 3.3515}


class TestHaversineDistance(SimpleTestCase):

    def test_identical_points_are_zero(self):
        distance = DeliveryFeeCalculator.haversine_distance((6.45, 3.39), (6.45, 3.39))
        self.assertEqual(distance, 0.0)

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is ~111.19 km with R = 6371."""
        distance = DeliveryFeeCalculator.haversine_distance((0.0, 0.0), (1.0, 0.0))
        self.assertAlmostEqual(distance, 111.195, places=2)

    def test_distance_is_symmetric_and_positive(self):
        a, b = (6.4541, 3.3947), (6.6018, 3.3515)
        forward = DeliveryFeeCalculator.haversine_distance(a, b)
        backward = DeliveryFeeCalculator.haversine_distance(b, a)
        self.assertGreater(forward, 0)
        self.assertAlmostEqual(forward, backward, places=9)

    def test_antipodal_points(self):
        """Half the circumference (pi * 6371 ~ 20015 km), never a math domain error."""
        for origin, destination in (
            ((-82.0, -180.0), (82.0, 0.0)),
            ((90.0, 0.0), (-90.0, 0.0)),
            ((0.0, 0.0), (0.0, 180.0)),
        ):
            distance = DeliveryFeeCalculator.haversine_distance(origin, destination)
            self.assertAlmostEqual(distance, math.pi * 6371.0, delta=1.0)


class TestFeeFormula(SimpleTestCase):
    """Tests with the default rates (500 base, 100/km, 5000 threshold)."""

    def setUp(self):
        self.calculator = DeliveryFeeCalculator()

    def test_ten_km_non_peak(self):
        """10 km, off-peak, order 1000 -> 500 + 1000 = 1500, 30 minutes."""
        quote = self.calculator.price_distance(10.0, Decimal('1000'), now=NON_PEAK)

        self.assertEqual(quote.base_fee, 500)
        self.assertEqual(quote.distance_fee, 1000)
        self.assertEqual(quote.surge_fee, 0)
        self.assertEqual(quote.total, 1500)
        self.assertEqual(quote.estimated_minutes, 30)
        self.assertFalse(quote.is_free_delivery)
        self.assertFalse(quote.is_peak_hour)

    def test_ten_km_peak(self):
        """Peak: surge = ceil(1000 * 0.5), total = ceil(2000 * 1.5)."""
        quote = self.calculator.price_distance(10.0, Decimal('1000'), now=PEAK)

        self.assertTrue(quote.is_peak_hour)
        self.assertEqual(quote.surge_fee, 500)
        self.assertEqual(quote.total, 3000)

    def test_distance_fee_rounds_up(self):
        quote = self.calculator.price_distance(2.341, Decimal('0'), now=NON_PEAK)
        # 234.1 -> 235
        self.assertEqual(quote.distance_fee, 235)
        self.assertEqual(quote.total, 735)
        self.assertEqual(quote.estimated_minutes, 8)

    def test_non_peak_total_is_base_plus_distance(self):
        for distance in (0.0, 0.4, 3.7, 12.25, 48.0):
            quote = self.calculator.price_distance(distance, Decimal('4999.99'), now=NON_PEAK)
            self.assertEqual(quote.surge_fee, 0)
            self.assertEqual(quote.total, quote.base_fee + quote.distance_fee)

    def test_peak_total_exceeds_non_peak(self):
        for distance in (0.0, 1.0, 7.5, 30.0):
            peak = self.calculator.price_distance(distance, Decimal('100'), now=PEAK)
            off_peak = self.calculator.price_distance(distance, Decimal('100'), now=NON_PEAK)
            self.assertGreater(peak.total, off_peak.total)

    def test_free_delivery_at_threshold(self):
        for order_value in (Decimal('5000'), Decimal('5000.01'), Decimal('250000')):
            for moment in (PEAK, NON_PEAK):
                quote = self.calculator.price_distance(25.0, order_value, now=moment)
                self.assertEqual(quote.total, 0)
                self.assertTrue(quote.is_free_delivery)

    def test_free_delivery_keeps_breakdown(self):
        """Fee components are still reported when delivery is free."""
        quote = self.calculator.price_distance(10.0, Decimal('6000'), now=NON_PEAK)
        self.assertEqual(quote.distance_fee, 1000)
        self.assertEqual(quote.total, 0)

    def test_just_below_threshold_is_charged(self):
        quote = self.calculator.price_distance(1.0, Decimal('4999.99'), now=NON_PEAK)
        self.assertFalse(quote.is_free_delivery)
        self.assertEqual(quote.total, 600)

    @override_settings(DELIVERY_BASE_FEE=300, DELIVERY_PER_KM_RATE=50, DELIVERY_FREE_THRESHOLD=10000)
    def test_rates_come_from_settings(self):
        quote = DeliveryFeeCalculator().price_distance(4.0, Decimal('6000'), now=NON_PEAK)
        self.assertEqual(quote.base_fee, 300)
        self.assertEqual(quote.distance_fee, 200)
        self.assertEqual(quote.total, 500)
        self.assertFalse(quote.is_free_delivery)


class TestPeakWindow(SimpleTestCase):

    def setUp(self):
        self.calculator = DeliveryFeeCalculator()

    def test_window_bounds(self):
        self.assertFalse(self.calculator.is_peak_hour(local_time(16, 59)))
        self.assertTrue(self.calculator.is_peak_hour(local_time(17, 0)))
        self.assertTrue(self.calculator.is_peak_hour(local_time(20, 59)))
        self.assertFalse(self.calculator.is_peak_hour(local_time(21, 0)))

    def test_utc_time_is_converted_to_local(self):
        """16:30 UTC is 17:30 in Lagos (UTC+1)."""
        moment = datetime(2025, 3, 14, 16, 30, tzinfo=dt_timezone.utc)
        self.assertTrue(self.calculator.is_peak_hour(moment))

    @override_settings(DELIVERY_PEAK_START_HOUR=7, DELIVERY_PEAK_END_HOUR=9)
    def test_window_from_settings(self):
        calculator = DeliveryFeeCalculator()
        self.assertTrue(calculator.is_peak_hour(local_time(8)))
        self.assertFalse(calculator.is_peak_hour(local_time(18)))


class TestInputValidation(SimpleTestCase):

    def test_parse_location(self):
        self.assertEqual(
            parse_location({'latitude': '6.5', 'longitude': 3}, 'merchantLocation'),
            (6.5, 3.0)
        )

    def test_missing_location(self):
        with self.assertRaises(InvalidInput):
            parse_location(None, 'merchantLocation')

    def test_missing_coordinate(self):
        with self.assertRaises(InvalidInput) as ctx:
            parse_location({'latitude': 6.5}, 'deliveryLocation')
        self.assertIn('deliveryLocation.longitude', str(ctx.exception))

    def test_out_of_range_coordinates(self):
        for location in (
            {'latitude': 90.01, 'longitude': 0},
            {'latitude': -91, 'longitude': 0},
            {'latitude': 0, 'longitude': 180.5},
            {'latitude': 0, 'longitude': -181},
        ):
            with self.assertRaises(InvalidInput):
                parse_location(location, 'deliveryLocation')

    def test_range_edges_are_valid(self):
        self.assertEqual(
            parse_location({'latitude': -90, 'longitude': 180}, 'deliveryLocation'),
            (-90.0, 180.0)
        )

    def test_non_numeric_coordinates(self):
        for value in ('north', True, [6.5], float('nan')):
            with self.assertRaises(InvalidInput):
                parse_location({'latitude': value, 'longitude': 3.4}, 'merchantLocation')

    def test_order_value(self):
        self.assertEqual(parse_order_value('1500.50'), Decimal('1500.50'))
        self.assertEqual(parse_order_value(0), Decimal('0'))
        for value in (None, -1, 'abc', 'NaN'):
            with self.assertRaises(InvalidInput):
                parse_order_value(value)

    def test_calculate_delivery_fee_end_to_end(self):
        quote = calculate_delivery_fee(LAGOS_ISLAND, IKEJA, 1200, now=NON_PEAK)
        self.assertGreater(quote.distance_km, 15)
        self.assertLess(quote.distance_km, 18)
        self.assertEqual(quote.total, 500 + quote.distance_fee)

    def test_identical_locations(self):
        quote = calculate_delivery_fee(IKEJA, dict(IKEJA), 1200, now=NON_PEAK)
        self.assertEqual(quote.distance_km, 0.0)
        self.assertEqual(quote.total, 500)
        self.assertEqual(quote.estimated_minutes, 0)

    def test_response_payload(self):
        quote = DeliveryFeeCalculator().price_distance(12.3456, Decimal('100'), now=NON_PEAK)
        self.assertEqual(quote.to_response(), {
            'distance': '12.35',
            'baseFee': 500,
            'distanceFee': 1235,
            'surgeFee': 0,
            'total': 1735,
            'isFreeDelivery': False,
            'estimatedTime': 38,
        })
