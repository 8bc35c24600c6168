"""
Orders App URLs
"""

from django.urls import path

from .views import AssignDriverView, CalculateDeliveryFeeView, UpdateOrderStatusView

urlpatterns = [
    path('calculate-delivery-fee/', CalculateDeliveryFeeView.as_view(), name='calculate-delivery-fee'),
    path('update-status/', UpdateOrderStatusView.as_view(), name='update-order-status'),
    path('assign-driver/', AssignDriverView.as_view(), name='assign-driver'),
]
