from rest_framework import serializers

from ..models import Payment


class PaymentTokenInputSerializer(serializers.Serializer):
    """Input for POST /api/payments/token/.

    `amount` is checked for sign in `payments.services.generate_token`, so a
    zero or negative value gets the same error as a missing one.
    """

    order_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    item_details = serializers.ListField(child=serializers.DictField(), required=False)
    customer_details = serializers.DictField(required=False)


class PaymentOutputSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "order",
            "client",
            "reference",
            "amount",
            "payment_method",
            "transaction_status",
            "fraud_status",
            "transaction_time",
            "created_at",
            "updated_at",
        ]
