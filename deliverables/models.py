"""Deliverables app models.

Defines the Deliverable model: a file a designer submits for an order. The
stored file is referenced by its storage handle (name inside the configured
storage backend) plus the public URL derived from it.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from orders.models import Order


class Deliverable(models.Model):
    """A submitted work file and its review state."""

    class Status(models.TextChoices):
        PENDING = "PENDING", "PENDING"
        APPROVED = "APPROVED", "APPROVED"
        REJECTED = "REJECTED", "REJECTED"

    order = models.ForeignKey(
        Order,
        on_delete=models.PROTECT,
        related_name="deliverables",
    )
    designer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="deliverables",
    )
    title = models.CharField(max_length=200, blank=True, default="")
    description = models.TextField(blank=True, default="")
    file_url = models.CharField(max_length=500)
    file_handle = models.CharField(max_length=255)

    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.PENDING
    )
    submitted_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    feedback = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-submitted_at", "-id")

    def __str__(self) -> str:
        """Readable representation for admin and debugging."""
        return f"Deliverable<{self.id} order={self.order_id} {self.status}>"
