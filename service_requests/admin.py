from django.contrib import admin
from django.utils.html import format_html
from .models import Category, ServiceApplication, ServiceRequest


STATUS_COLORS = {
    "open": "#0ea5e9",
    "assigned": "#f59e0b",
    "completed": "#22c55e",
    "cancelled": "#ef4444",
}


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "updated_at")
    search_fields = ("name",)
    ordering = ("name",)


class ServiceApplicationInline(admin.TabularInline):
    """
    Applications shown read-only below the request.
    """
    model = ServiceApplication
    extra = 0
    fields = ("designer", "created_at")
    readonly_fields = ("designer", "created_at")
    can_delete = False


@admin.register(ServiceRequest)
class ServiceRequestAdmin(admin.ModelAdmin):
    """
    Service requests:
    - list: id, title, status (badge), client, assigned designer, budget, deadline
    - lifecycle fields are read-only; they only change through the API operations
    """
    inlines = [ServiceApplicationInline]
    list_display = (
        "id",
        "title",
        "status_badge",
        "client_username",
        "assigned_username",
        "budget",
        "deadline",
        "created_at",
    )
    list_select_related = ("client", "assigned_to", "category")
    list_filter = ("status", "category", "created_at")
    date_hierarchy = "created_at"
    ordering = ("-created_at", "-id")
    search_fields = ("title", "client__username", "assigned_to__username")
    readonly_fields = ("status", "assigned_to", "created_at", "updated_at")

    def status_badge(self, obj):
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            STATUS_COLORS.get(obj.status, "#9ca3af"),
            obj.status,
        )
    status_badge.short_description = "status"
    status_badge.admin_order_field = "status"

    def client_username(self, obj):
        return obj.client.username if obj.client_id else ""
    client_username.short_description = "client"

    def assigned_username(self, obj):
        return obj.assigned_to.username if obj.assigned_to_id else ""
    assigned_username.short_description = "designer"
