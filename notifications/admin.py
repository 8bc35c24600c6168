"""
Django Admin configuration for NOTIFICATIONS app.
"""

from django.contrib import admin
from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'type', 'role', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')
    search_fields = ('title', 'message', 'user__email')
    raw_id_fields = ('user',)
    ordering = ('-created_at',)
