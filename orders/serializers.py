"""
Orders App Serializers
"""

from rest_framework import serializers
from .models import OrderStatus


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Request body of the update-status endpoint."""

    orderId = serializers.UUIDField()
    newStatus = serializers.ChoiceField(choices=OrderStatus.choices)
    driverId = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class DriverAssignSerializer(serializers.Serializer):
    """Request body of the assign-driver endpoint."""

    orderId = serializers.UUIDField()
