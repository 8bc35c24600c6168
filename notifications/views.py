"""
Notifications App Views
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import NotFound
from core.permissions import IsAdminRole
from .models import Notification
from .serializers import NotificationSerializer, SendNotificationSerializer
from .services import create_notification


class SendNotificationView(APIView):
    """
    Write a notification for any user (back-office and internal callers).

    POST /api/notifications/send/
    {"userId": "<uuid>", "title": "...", "message": "...", "type": "order", "data": {...}}
    """

    permission_classes = [IsAdminRole]

    def post(self, request):
        serializer = SendNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        User = get_user_model()
        try:
            user = User.objects.get(pk=data['userId'])
        except (User.DoesNotExist, DjangoValidationError):
            raise NotFound("User not found")

        notification = create_notification(
            user,
            data['title'],
            data['message'],
            notification_type=data['type'],
            role=data.get('role') or None,
            data=data.get('data'),
        )

        return Response({
            'success': True,
            'data': {
                'notificationId': str(notification.id),
            },
        })


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    The caller's notifications, newest first.

    Filters: ?is_read=false, ?type=ORDER
    """

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['is_read', 'type']

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        """Mark one notification as read."""
        notification = self.get_object()
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])

        return Response({
            'success': True,
            'data': NotificationSerializer(notification).data,
        })
