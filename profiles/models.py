"""Profiles app models.

Defines the Profile model that attaches a marketplace role (client/designer) to
the base user. Every authorization rule that depends on a role reads it from
here.
"""

from django.db import models
from django.conf import settings


class Profile(models.Model):
    """Role information for a single user (OneToOne with the auth user)."""

    class Type(models.TextChoices):
        CLIENT = "client", "client"
        DESIGNER = "designer", "designer"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.CLIENT,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        """Readable representation for admin and debugging."""
        return f"Profile<{self.user_id}:{self.user.username} {self.type}>"
