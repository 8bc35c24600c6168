"""
Django Admin configuration for ORDERS app.
"""

from django.contrib import admin
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ('id', 'consumer', 'merchant', 'driver', 'status', 'order_value', 'created_at')
    list_filter = ('status',)
    search_fields = ('id', 'consumer__email', 'merchant__email', 'driver__email')
    raw_id_fields = ('consumer', 'merchant', 'driver')
    # Status changes must go through the API so transitions are validated
    readonly_fields = ('status', 'created_at', 'updated_at', 'delivered_at')
    ordering = ('-created_at',)
