"""
Orders App Views - Delivery pricing, status updates and driver assignment

Every endpoint answers POST with a JSON envelope:
    {"success": true, "data": {...}}
    {"success": false, "error": "..."}   (HTTP 400, see core.exceptions)
"""

from collections.abc import Mapping

from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import InvalidInput
from .serializers import DriverAssignSerializer, OrderStatusUpdateSerializer
from .services.dispatch import assign_driver
from .services.pricing import calculate_delivery_fee
from .services.status import update_order_status


class CalculateDeliveryFeeView(APIView):
    """
    Public delivery fee quote.

    POST /api/orders/calculate-delivery-fee/

    Request body:
    {
        "merchantLocation": {"latitude": 6.5244, "longitude": 3.3792},
        "deliveryLocation": {"latitude": 6.4654, "longitude": 3.4064},
        "orderValue": 3500
    }

    Response:
    {
        "success": true,
        "data": {
            "distance": "7.23", "baseFee": 500, "distanceFee": 723,
            "surgeFee": 0, "total": 1223, "isFreeDelivery": false,
            "estimatedTime": 22
        }
    }
    """

    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        if not isinstance(request.data, Mapping):
            raise InvalidInput("Request body must be a JSON object")

        quote = calculate_delivery_fee(
            request.data.get('merchantLocation'),
            request.data.get('deliveryLocation'),
            request.data.get('orderValue'),
        )

        return Response({
            'success': True,
            'data': quote.to_response(),
        })


class UpdateOrderStatusView(APIView):
    """
    Move an order along its status lifecycle.

    POST /api/orders/update-status/
    {"orderId": "<uuid>", "newStatus": "OUT_FOR_DELIVERY", "driverId": "<uuid>", "notes": "..."}
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = update_order_status(
            order_id=data['orderId'],
            new_status=data['newStatus'],
            actor=request.user,
            driver_id=data.get('driverId'),
            notes=data.get('notes'),
        )

        return Response({
            'success': True,
            'data': {
                'orderId': str(order.id),
                'newStatus': order.status,
            },
            'message': 'Order status updated successfully',
        })


class AssignDriverView(APIView):
    """
    Assign the best available driver to an order.

    POST /api/orders/assign-driver/
    {"orderId": "<uuid>"}
    """

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = DriverAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        driver = assign_driver(serializer.validated_data['orderId'], actor=request.user)

        return Response({
            'success': True,
            'data': {
                'driverId': str(driver.pk),
                'driverName': driver.full_name,
            },
        })
