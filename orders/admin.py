from django.contrib import admin
from django.utils.html import format_html
from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Order overview:
    - list: id, service, status (badge), paid flag, client, designer, price, revisions
    - filters: status, paid, created (date hierarchy)
    - everything is read-only; payment and review flows own these fields
    """
    list_display = (
        "id",
        "service",
        "status_badge",
        "is_paid",
        "client_username",
        "designer_username",
        "price",
        "revisions_display",
        "created_at",
        "updated_at",
    )
    list_select_related = ("service", "client", "designer")
    list_filter = ("status", "is_paid", "created_at")
    date_hierarchy = "created_at"
    ordering = ("-created_at", "-id")
    search_fields = ("service__title", "client__username", "designer__username")

    readonly_fields = (
        "service",
        "client",
        "designer",
        "price",
        "status",
        "revision_count",
        "max_revisions",
        "is_paid",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):
        # Orders only come into existence through an accepted application.
        return False

    # Badges & Shortcuts
    def status_badge(self, obj):
        color = {
            "awaiting_payment": "#a855f7",
            "in_progress": "#0ea5e9",
            "revision": "#f59e0b",
            "completed": "#22c55e",
            "cancelled": "#ef4444",
        }.get(obj.status, "#9ca3af")
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            color,
            obj.status,
        )
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"

    def client_username(self, obj):
        return obj.client.username if obj.client_id else ""
    client_username.short_description = "client"

    def designer_username(self, obj):
        return obj.designer.username if obj.designer_id else ""
    designer_username.short_description = "designer"

    def revisions_display(self, obj):
        return f"{obj.revision_count}/{obj.max_revisions}"
    revisions_display.short_description = "revisions"
