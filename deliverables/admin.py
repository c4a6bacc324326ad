from django.contrib import admin
from .models import Deliverable


@admin.register(Deliverable)
class DeliverableAdmin(admin.ModelAdmin):
    """
    Deliverables per order; review state is read-only (the client reviews via the API).
    """
    list_display = ("id", "order", "designer", "title", "status", "submitted_at", "reviewed_at")
    list_select_related = ("order", "designer")
    list_filter = ("status", "submitted_at")
    search_fields = ("title", "designer__username", "order__service__title")
    ordering = ("-submitted_at", "-id")
    readonly_fields = (
        "order",
        "designer",
        "file_url",
        "file_handle",
        "status",
        "submitted_at",
        "reviewed_at",
        "feedback",
        "created_at",
        "updated_at",
    )
