"""Service requests API serializers.

Input serializers for creating and patching service requests, and output
serializers for categories, requests and the order created on application.
The client, status and assignment are never taken from the payload.
"""

from django.utils import timezone
from rest_framework import serializers

from orders.models import Order
from ..models import Category, ServiceRequest


def _ensure_url_list(value):
    if not isinstance(value, list) or any(not isinstance(x, str) for x in value):
        raise serializers.ValidationError("Must be an array of URL strings.")
    return value


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name"]


class ServiceRequestInputSerializer(serializers.ModelSerializer):
    """Input serializer for POST (full) and PATCH (partial=True) on service requests."""

    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all())
    attachments = serializers.JSONField(required=False, default=list)

    class Meta:
        model = ServiceRequest
        fields = ["category", "title", "description", "budget", "deadline", "attachments"]

    def validate_attachments(self, value):
        return _ensure_url_list(value)

    def validate_budget(self, value):
        if value < 0:
            raise serializers.ValidationError("Must be >= 0.")
        return value

    def validate_deadline(self, value):
        if value <= timezone.now():
            raise serializers.ValidationError("Deadline must be in the future.")
        return value


class ServiceRequestOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a complete service request."""

    category = CategorySerializer(read_only=True)
    applications = serializers.SerializerMethodField()

    class Meta:
        model = ServiceRequest
        fields = [
            "id",
            "client",
            "category",
            "title",
            "description",
            "budget",
            "deadline",
            "attachments",
            "status",
            "assigned_to",
            "max_revisions",
            "applications",
            "created_at",
            "updated_at",
        ]

    def get_applications(self, obj):
        return [a.designer_id for a in obj.applications.all()]


class AppliedOrderSerializer(serializers.ModelSerializer):
    """Order payload returned after a successful application."""

    class Meta:
        model = Order
        fields = [
            "id",
            "service",
            "client",
            "designer",
            "price",
            "status",
            "revision_count",
            "max_revisions",
            "is_paid",
            "created_at",
        ]
