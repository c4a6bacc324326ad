"""Orders API serializers.

Output serializer for orders and the input serializer for status changes. The
status value itself is validated by `orders.services.update_order_status`, so
unknown values surface as the domain ValidationError.
"""

from rest_framework import serializers
from orders.models import Order


class OrderOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a complete order representation."""

    service_title = serializers.CharField(source="service.title", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "service",
            "service_title",
            "client",
            "designer",
            "price",
            "status",
            "revision_count",
            "max_revisions",
            "is_paid",
            "created_at",
            "updated_at",
        ]


class OrderStatusInputSerializer(serializers.Serializer):
    """Input serializer used to update only the order status."""

    status = serializers.CharField(max_length=20)
