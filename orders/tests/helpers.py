"""
Shared fixtures for order tests.
"""

from decimal import Decimal

from core.models import User, UserRole
from orders.models import Order, OrderStatus

_counter = {'n': 0}


def make_user(role=UserRole.CONSUMER, **extra):
    _counter['n'] += 1
    extra.setdefault('full_name', f"{role.title()} {_counter['n']}")
    return User.objects.create_user(
        email=f"{role.lower()}{_counter['n']}@brillprime.test",
        password='testpass123',
        role=role,
        **extra,
    )


def make_order(consumer, status=OrderStatus.PENDING, **extra):
    extra.setdefault('merchant_latitude', 6.4541)
    extra.setdefault('merchant_longitude', 3.3947)
    extra.setdefault('delivery_latitude', 6.6018)
    extra.setdefault('delivery_longitude', 3.3515)
    extra.setdefault('order_value', Decimal('3500.00'))
    return Order.objects.create(consumer=consumer, status=status, **extra)
