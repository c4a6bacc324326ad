"""Deliverables API serializers.

Input serializers for submitting, resubmitting and reviewing deliverables
(multipart for file uploads) and the output serializer. Status rules live in
`deliverables.services`; these only check the payload shape.
"""

from rest_framework import serializers

from ..models import Deliverable


class DeliverableSubmitSerializer(serializers.Serializer):
    """Input for POST /api/deliverables/ (multipart)."""

    order = serializers.IntegerField()
    title = serializers.CharField(max_length=200, required=False, allow_blank=True, default="")
    description = serializers.CharField(required=False, allow_blank=True, default="")
    file = serializers.FileField()


class DeliverableResubmitSerializer(serializers.Serializer):
    """Input for PATCH /api/deliverables/{id}/; every field is optional."""

    title = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    file = serializers.FileField(required=False)


class DeliverableReviewSerializer(serializers.Serializer):
    """Input for POST /api/deliverables/{id}/review/."""

    status = serializers.CharField(max_length=10)
    feedback = serializers.CharField(required=False, allow_blank=True, default="")


class DeliverableOutputSerializer(serializers.ModelSerializer):
    """Read serializer for returning a complete deliverable."""

    class Meta:
        model = Deliverable
        fields = [
            "id",
            "order",
            "designer",
            "title",
            "description",
            "file_url",
            "status",
            "submitted_at",
            "reviewed_at",
            "feedback",
            "created_at",
            "updated_at",
        ]
