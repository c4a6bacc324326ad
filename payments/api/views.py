"""Payments API views.

The client of an order requests a Snap token; the gateway posts notifications
to an unauthenticated webhook that always answers 200; participants read the
payments of their orders.
"""

from rest_framework import generics, status
from rest_framework.exceptions import ParseError, UnsupportedMediaType
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from payments import services
from payments.models import PaymentNotification
from .serializers import PaymentOutputSerializer, PaymentTokenInputSerializer


class PaymentTokenAPIView(APIView):
    """POST /api/payments/token/ -> {"token", "redirect_url", "client_key"}."""

    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "payment_token"

    def post(self, request):
        serializer = PaymentTokenInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        result = services.generate_token(
            data["order_id"],
            data.get("amount"),
            request.user,
            item_details=data.get("item_details"),
            customer_details=data.get("customer_details"),
        )
        return Response(result, status=status.HTTP_200_OK)


class PaymentNotificationAPIView(APIView):
    """POST /api/payments/notification/ -> gateway webhook, always 200."""

    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = []

    def post(self, request):
        # Cache the raw body first so it is still readable if parsing fails.
        body = request.body
        try:
            payload = request.data
        except (ParseError, UnsupportedMediaType):
            payload = {"raw": body.decode("utf-8", "replace")}
        record = services.handle_notification(payload)
        if record.status == PaymentNotification.Status.PROCESSED:
            return Response({"status": "OK"}, status=status.HTTP_200_OK)
        return Response(
            {"status": "ERROR", "message": record.error_message},
            status=status.HTTP_200_OK,
        )


class PaymentListAPIView(generics.ListAPIView):
    """GET /api/payments/ -> payments on the caller's orders."""

    serializer_class = PaymentOutputSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return services.user_payments(self.request.user)


class OrderPaymentAPIView(APIView):
    """GET /api/payments/order/{order_id}/ -> latest payment of an order."""

    permission_classes = [IsAuthenticated]

    def get(self, request, order_id):
        payment = services.latest_payment_for_order(order_id, request.user)
        return Response(PaymentOutputSerializer(payment).data, status=status.HTTP_200_OK)
