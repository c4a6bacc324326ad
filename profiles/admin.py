from django.contrib import admin
from django.utils.html import format_html
from .models import Profile


ROLE_COLORS = {
    "client": "#0ea5e9",
    "designer": "#a855f7",
}


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """
    Marketplace roles:
    - list: user, email, role (badge), orders still running for that role
    - the role decides which API operations a user may call
    """
    list_display = ("user", "email", "role_badge", "active_orders", "created_at")
    list_select_related = ("user",)
    list_filter = ("type",)
    search_fields = ("user__username", "user__email")
    ordering = ("type", "user__username")
    readonly_fields = ("user", "created_at")

    def email(self, obj):
        return obj.user.email
    email.admin_order_field = "user__email"

    def role_badge(self, obj):
        return format_html(
            '<span style="display:inline-block;padding:2px 8px;border-radius:999px;'
            'font-size:12px;font-weight:600;color:#fff;background:{};">{}</span>',
            ROLE_COLORS.get(obj.type, "#9ca3af"),
            obj.type,
        )
    role_badge.short_description = "role"
    role_badge.admin_order_field = "type"

    def active_orders(self, obj):
        orders = obj.user.orders_received if obj.type == "designer" else obj.user.orders_placed
        return orders.exclude(status__in=("completed", "cancelled")).count()
    active_orders.short_description = "active orders"
