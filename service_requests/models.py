"""Service requests app models.

Defines Category, ServiceRequest and ServiceApplication. A ServiceRequest is
posted by a client; designers apply to it, and the first accepted application
assigns the request and creates its Order (see `service_requests.services`).
"""

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


def default_max_revisions() -> int:
    return settings.MARKETPLACE["MAX_REVISIONS"]


class Category(models.Model):
    """Design category a service request is filed under."""

    name = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name


class ServiceRequest(models.Model):
    """A client's request for design work."""

    class Status(models.TextChoices):
        OPEN = "open", "open"
        ASSIGNED = "assigned", "assigned"
        COMPLETED = "completed", "completed"
        CANCELLED = "cancelled", "cancelled"

    client = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="service_requests",
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="service_requests",
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    budget = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(0)]
    )
    deadline = models.DateTimeField()
    attachments = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.OPEN
    )
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="assigned_service_requests",
        null=True,
        blank=True,
    )
    max_revisions = models.PositiveIntegerField(
        default=default_max_revisions, validators=[MinValueValidator(1)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        """Readable representation for admin and debugging."""
        return f"ServiceRequest<{self.id} {self.title} {self.status}>"


class ServiceApplication(models.Model):
    """A designer's application for a service request."""

    service = models.ForeignKey(
        ServiceRequest,
        on_delete=models.CASCADE,
        related_name="applications",
    )
    designer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="service_applications",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["service", "designer"],
                name="unique_application_per_service_and_designer",
            )
        ]
        ordering = ("created_at", "id")

    def __str__(self) -> str:
        return f"ServiceApplication<{self.service_id} <- {self.designer_id}>"
