"""Payments app models.

Payment is one row per gateway transaction reference; the reference is the
idempotency key for replayed webhooks. PaymentNotification keeps every raw
webhook call together with how it was processed.
"""

from django.conf import settings
from django.db import models

from orders.models import Order


class Payment(models.Model):
    """A gateway transaction for an order, updated from webhook notifications."""

    class Method(models.TextChoices):
        CREDIT_CARD = "credit_card", "credit_card"
        GOPAY = "gopay", "gopay"
        BANK_TRANSFER = "bank_transfer", "bank_transfer"
        SHOPEEPAY = "shopeepay", "shopeepay"
        OTHER = "other", "other"

    class TransactionStatus(models.TextChoices):
        PENDING = "pending", "pending"
        CAPTURE = "capture", "capture"
        SETTLEMENT = "settlement", "settlement"
        DENY = "deny", "deny"
        CANCEL = "cancel", "cancel"
        EXPIRE = "expire", "expire"
        FAILURE = "failure", "failure"
        REFUND = "refund", "refund"

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    reference = models.CharField(max_length=100, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(
        max_length=20, choices=Method.choices, default=Method.OTHER
    )
    transaction_status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING,
    )
    fraud_status = models.CharField(max_length=20, blank=True, default="")
    gateway_response = models.JSONField(default=dict, blank=True)
    transaction_time = models.DateTimeField(auto_now_add=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"Payment<{self.reference} order={self.order_id} {self.transaction_status}>"

    @property
    def is_settled(self) -> bool:
        return self.transaction_status == self.TransactionStatus.SETTLEMENT or (
            self.transaction_status == self.TransactionStatus.CAPTURE
            and self.fraud_status == "accept"
        )


class PaymentNotification(models.Model):
    """Raw webhook payload as received, with its processing outcome."""

    class Status(models.TextChoices):
        RECEIVED = "received", "received"
        PROCESSED = "processed", "processed"
        FAILED = "failed", "failed"

    reference = models.CharField(max_length=100, blank=True, default="", db_index=True)
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.RECEIVED
    )
    error_message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"PaymentNotification<{self.id} {self.reference} {self.status}>"
