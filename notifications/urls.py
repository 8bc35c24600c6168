"""
Notifications App URLs
"""

from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import NotificationViewSet, SendNotificationView

router = SimpleRouter()
router.register(r'', NotificationViewSet, basename='notification')

urlpatterns = [
    path('send/', SendNotificationView.as_view(), name='notification-send'),
    path('', include(router.urls)),
]
