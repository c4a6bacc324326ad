"""Orders app models.

Defines the Order model. An Order is created exactly once, when a designer's
application to a ServiceRequest is accepted. It snapshots the request's budget
as its price and the request's revision policy, so later edits to the request
cannot change a running order.
"""

from django.conf import settings
from django.db import models
from django.core.validators import MinValueValidator
from service_requests.models import ServiceRequest


class Order(models.Model):
    """Work agreement between a client and a designer for one service request."""

    class Status(models.TextChoices):
        AWAITING_PAYMENT = "awaiting_payment", "awaiting_payment"
        IN_PROGRESS = "in_progress", "in_progress"
        REVISION = "revision", "revision"
        COMPLETED = "completed", "completed"
        CANCELLED = "cancelled", "cancelled"

    service = models.OneToOneField(
        ServiceRequest,
        on_delete=models.PROTECT,
        related_name="order",
    )
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_placed",
    )
    designer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_received",
    )

    price = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(0)]
    )
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.AWAITING_PAYMENT
    )
    revision_count = models.PositiveIntegerField(default=0)
    max_revisions = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_paid = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        """Readable representation for admin and debugging."""
        return f"Order<{self.id} service={self.service_id} {self.status}>"

    @property
    def is_closed(self) -> bool:
        return self.status in (self.Status.COMPLETED, self.Status.CANCELLED)
