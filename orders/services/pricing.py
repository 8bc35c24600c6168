"""
Delivery Fee Engine for BRILLPRIME

Prices a delivery from the straight-line (haversine) distance between the
merchant and the delivery address, with a peak-hour surcharge and free
delivery above an order value threshold.

Formula:
    distance_fee = ceil(distance_km * per_km_rate)
    surge_fee    = ceil(distance_fee * surge_fee_rate)   (peak hours only)
    total        = ceil((base_fee + distance_fee + surge_fee) * multiplier)
    total        = 0 if order_value >= free_delivery_threshold
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Tuple

from django.conf import settings
from django.utils import timezone

from core.exceptions import InvalidInput

logger = logging.getLogger(__name__)


# ============================================
# DEFAULTS (overridable through Django settings)
# ============================================

EARTH_RADIUS_KM = 6371.0

BASE_FEE = 500                   # NGN
PER_KM_RATE = 100                # NGN/km
FREE_DELIVERY_THRESHOLD = 5000   # NGN
PEAK_START_HOUR = 17             # inclusive, local time
PEAK_END_HOUR = 20               # inclusive, local time
SURGE_FEE_RATE = 0.5
SURGE_MULTIPLIER = 1.5
MINUTES_PER_KM = 3

Location = Tuple[float, float]


@dataclass
class DeliveryFeeQuote:
    """Breakdown of a delivery fee."""
    distance_km: float
    base_fee: int
    distance_fee: int
    surge_fee: int
    total: int
    is_free_delivery: bool
    estimated_minutes: int
    is_peak_hour: bool

    def to_response(self) -> Dict[str, Any]:
        """Payload returned by the calculate-delivery-fee endpoint."""
        return {
            'distance': f"{self.distance_km:.2f}",
            'baseFee': self.base_fee,
            'distanceFee': self.distance_fee,
            'surgeFee': self.surge_fee,
            'total': self.total,
            'isFreeDelivery': self.is_free_delivery,
            'estimatedTime': self.estimated_minutes,
        }


# ============================================
# INPUT PARSING
# ============================================

def _parse_coordinate(value, field: str, limit: float) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{field} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if not math.isfinite(number) or not -limit <= number <= limit:
        raise InvalidInput(f"{field} must be between {-limit:g} and {limit:g}")
    return number


def parse_location(value: Optional[Mapping], field: str) -> Location:
    """
    Validate a {"latitude": ..., "longitude": ...} mapping.

    Returns:
        (latitude, longitude) as floats

    Raises:
        InvalidInput: missing location, missing coordinate or out of range
    """
    if not isinstance(value, Mapping):
        raise InvalidInput(f"{field} is required")
    latitude = _parse_coordinate(value.get('latitude'), f"{field}.latitude", 90)
    longitude = _parse_coordinate(value.get('longitude'), f"{field}.longitude", 180)
    return (latitude, longitude)


def parse_order_value(value) -> Decimal:
    """Validate a non-negative order amount."""
    if value is None or isinstance(value, bool):
        raise InvalidInput("orderValue is required")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput("orderValue must be a number")
    if not amount.is_finite() or amount < 0:
        raise InvalidInput("orderValue must be a non-negative amount")
    return amount


# ============================================
# FEE CALCULATOR
# ============================================

class DeliveryFeeCalculator:
    """
    Delivery fee calculation with peak-hour surge and free delivery.

    Rates come from settings (DELIVERY_*), falling back to the module
    defaults. The peak window is evaluated in the project TIME_ZONE.
    """

    def __init__(self):
        self.base_fee = getattr(settings, 'DELIVERY_BASE_FEE', BASE_FEE)
        self.per_km_rate = getattr(settings, 'DELIVERY_PER_KM_RATE', PER_KM_RATE)
        self.free_delivery_threshold = Decimal(str(
            getattr(settings, 'DELIVERY_FREE_THRESHOLD', FREE_DELIVERY_THRESHOLD)
        ))
        self.peak_start_hour = getattr(settings, 'DELIVERY_PEAK_START_HOUR', PEAK_START_HOUR)
        self.peak_end_hour = getattr(settings, 'DELIVERY_PEAK_END_HOUR', PEAK_END_HOUR)
        self.surge_fee_rate = getattr(settings, 'DELIVERY_SURGE_FEE_RATE', SURGE_FEE_RATE)
        self.surge_multiplier = getattr(settings, 'DELIVERY_SURGE_MULTIPLIER', SURGE_MULTIPLIER)
        self.minutes_per_km = getattr(settings, 'DELIVERY_MINUTES_PER_KM', MINUTES_PER_KM)

    @staticmethod
    def haversine_distance(origin: Location, destination: Location) -> float:
        """
        Great-circle distance in kilometers between two (lat, lng) points.
        """
        lat1, lng1 = math.radians(origin[0]), math.radians(origin[1])
        lat2, lng2 = math.radians(destination[0]), math.radians(destination[1])

        dlat = lat2 - lat1
        dlng = lng2 - lng1

        a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
        # Rounding can push `a` just past 1 for antipodal points
        a = min(1.0, a)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return EARTH_RADIUS_KM * c

    def is_peak_hour(self, now: Optional[datetime] = None) -> bool:
        """True if the local hour of `now` falls inside the peak window."""
        now = now or timezone.now()
        if timezone.is_aware(now):
            now = timezone.localtime(now)
        return self.peak_start_hour <= now.hour <= self.peak_end_hour

    def price_distance(
        self,
        distance_km: float,
        order_value: Decimal,
        now: Optional[datetime] = None
    ) -> DeliveryFeeQuote:
        """
        Price a delivery of `distance_km` for an order worth `order_value`.
        """
        peak = self.is_peak_hour(now)
        multiplier = self.surge_multiplier if peak else 1.0

        distance_fee = math.ceil(distance_km * self.per_km_rate)
        surge_fee = math.ceil(distance_fee * self.surge_fee_rate) if peak else 0
        total = math.ceil((self.base_fee + distance_fee + surge_fee) * multiplier)

        is_free = Decimal(str(order_value)) >= self.free_delivery_threshold
        if is_free:
            total = 0

        return DeliveryFeeQuote(
            distance_km=distance_km,
            base_fee=self.base_fee,
            distance_fee=distance_fee,
            surge_fee=surge_fee,
            total=total,
            is_free_delivery=is_free,
            estimated_minutes=math.ceil(distance_km * self.minutes_per_km),
            is_peak_hour=peak,
        )

    def calculate(
        self,
        merchant_location: Location,
        delivery_location: Location,
        order_value: Decimal,
        now: Optional[datetime] = None
    ) -> DeliveryFeeQuote:
        """
        Full quote from merchant and delivery coordinates.
        """
        distance_km = self.haversine_distance(merchant_location, delivery_location)
        quote = self.price_distance(distance_km, order_value, now=now)

        logger.info(
            f"[PRICING] {distance_km:.2f} km | peak={quote.is_peak_hour} | "
            f"total={quote.total} | free={quote.is_free_delivery}"
        )
        return quote


def calculate_delivery_fee(
    merchant_location: Optional[Mapping],
    delivery_location: Optional[Mapping],
    order_value,
    now: Optional[datetime] = None
) -> DeliveryFeeQuote:
    """
    Validate raw request values and price the delivery.

    Raises:
        InvalidInput: malformed coordinates or amount
    """
    origin = parse_location(merchant_location, 'merchantLocation')
    destination = parse_location(delivery_location, 'deliveryLocation')
    amount = parse_order_value(order_value)
    return DeliveryFeeCalculator().calculate(origin, destination, amount, now=now)
