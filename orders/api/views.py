"""Orders API views.

List the orders the authenticated user participates in (as client or
designer), optionally only the paid ones, retrieve a single order, and change
an order's status through the order lifecycle.
"""

from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from orders import services
from orders.models import Order
from .permissions import IsOrderParticipant
from .serializers import OrderOutputSerializer, OrderStatusInputSerializer


# ----------------------------- helpers (module-level) -----------------------------

def _validate_only_status(data):
    """Allow only 'status' in the payload; return a 400 Response otherwise."""
    extra = set(data.keys()) - {"status"}
    if extra:
        return Response(
            {"detail": f"Only 'status' may be updated. Invalid fields: {', '.join(sorted(extra))}."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return None


# --------------------------------------- views ---------------------------------------

class OrderListAPIView(generics.ListAPIView):
    """GET /api/orders/ -> orders of the authenticated user, newest first."""

    serializer_class = OrderOutputSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return services.user_orders_queryset(self.request.user)


class PaidOrderListAPIView(OrderListAPIView):
    """GET /api/orders/paid/ -> only the user's orders that have been paid."""

    def get_queryset(self):
        return super().get_queryset().filter(is_paid=True)


class OrderDetailAPIView(generics.RetrieveAPIView):
    """GET /api/orders/{id}/ -> a single order (participants only)."""

    queryset = Order.objects.all().select_related("service", "client", "designer")
    serializer_class = OrderOutputSerializer
    permission_classes = [IsAuthenticated, IsOrderParticipant]


class OrderStatusUpdateAPIView(APIView):
    """PATCH/PUT /api/orders/{id}/status/ -> move the order to a new status."""

    permission_classes = [IsAuthenticated]

    def patch(self, request, pk):
        bad = _validate_only_status(request.data)
        if bad is not None:
            return bad
        serializer = OrderStatusInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.update_order_status(pk, serializer.validated_data["status"], request.user)
        return Response(OrderOutputSerializer(order).data, status=status.HTTP_200_OK)

    def put(self, request, pk):
        return self.patch(request, pk)
