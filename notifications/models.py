"""
NOTIFICATIONS App - In-app notification records

Rows are read by the mobile app's notification screens; delivery over
push channels is handled outside this service.
"""

import uuid
from django.conf import settings
from django.db import models


class NotificationType(models.TextChoices):
    ORDER = 'ORDER', 'Order update'
    DELIVERY = 'DELIVERY', 'Delivery assignment'
    SYSTEM = 'SYSTEM', 'System message'


class Notification(models.Model):
    """Notification addressed to one user."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    title = models.CharField(max_length=150)
    message = models.TextField()
    type = models.CharField(
        max_length=20,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM,
    )
    # Recipient role at send time (consumer / driver / ...)
    role = models.CharField(max_length=20, blank=True)
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} -> {self.user_id}"
