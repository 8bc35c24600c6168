"""
BRILLPRIME Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from core.health import health_check, readiness_check


admin.site.site_header = "BrillPrime Operations"
admin.site.site_title = "BrillPrime Admin"


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'BRILLPRIME API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
            },
            'orders': {
                'calculate_delivery_fee': '/api/orders/calculate-delivery-fee/',
                'update_status': '/api/orders/update-status/',
                'assign_driver': '/api/orders/assign-driver/',
            },
            'notifications': {
                'list': '/api/notifications/',
                'send': '/api/notifications/send/',
            },
            'realtime': '/ws/orders/<order_id>/',
        }
    })


urlpatterns = [
    # Health checks (load balancers / Docker)
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='health-ready'),

    path('admin/', admin.site.urls),

    path('api/', api_root, name='api-root'),
    path('api/schema/', SpectacularAPIView.as_view(), name='api-schema'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/orders/', include('orders.urls')),
    path('api/notifications/', include('notifications.urls')),
]
