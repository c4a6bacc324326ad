from django.contrib import admin
from .models import Payment, PaymentNotification


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Payments as reported by the gateway; read-only, the webhook owns them.
    """
    list_display = ("id", "reference", "order", "client", "amount", "payment_method", "transaction_status", "created_at")
    list_select_related = ("order", "client")
    list_filter = ("transaction_status", "payment_method", "created_at")
    search_fields = ("reference", "client__username")
    ordering = ("-created_at", "-id")
    readonly_fields = (
        "order",
        "client",
        "reference",
        "amount",
        "payment_method",
        "transaction_status",
        "fraud_status",
        "gateway_response",
        "transaction_time",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        return False


@admin.register(PaymentNotification)
class PaymentNotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "reference", "status", "created_at", "processed_at")
    list_filter = ("status", "created_at")
    search_fields = ("reference", "error_message")
    ordering = ("-created_at", "-id")
    readonly_fields = ("reference", "payload", "status", "error_message", "created_at", "processed_at")

    def has_add_permission(self, request):
        return False
