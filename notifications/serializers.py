"""
Notifications App Serializers
"""

from rest_framework import serializers

from core.models import UserRole
from .models import Notification, NotificationType


class NotificationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'type', 'role', 'data', 'is_read', 'created_at']
        read_only_fields = fields


class SendNotificationSerializer(serializers.Serializer):
    """Request body of the send endpoint."""

    userId = serializers.UUIDField()
    title = serializers.CharField(max_length=150)
    message = serializers.CharField()
    type = serializers.CharField(default=NotificationType.SYSTEM)
    role = serializers.CharField(max_length=20, required=False, allow_blank=True)
    data = serializers.JSONField(required=False)

    def validate_type(self, value):
        # Mobile clients send lowercase types ("order", "delivery")
        normalized = value.upper()
        if normalized not in NotificationType.values:
            raise serializers.ValidationError(
                f"Unknown notification type '{value}'."
            )
        return normalized

    def validate_role(self, value):
        if not value:
            return value
        normalized = value.upper()
        if normalized not in UserRole.values:
            raise serializers.ValidationError(
                f"Unknown role '{value}'."
            )
        return normalized

    def validate_data(self, value):
        if value is not None and not isinstance(value, dict):
            raise serializers.ValidationError("data must be a JSON object.")
        return value
