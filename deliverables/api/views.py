"""Deliverables API views.

Designers submit, resubmit and delete deliverables; clients review them. Both
participants of an order can list its deliverables, read one, get its file URL
or download the file. Every state change goes through
`deliverables.services`.
"""

import os

from django.http import FileResponse
from rest_framework import generics, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import NotFoundError
from deliverables import services
from deliverables.storage import deliverable_storage
from .serializers import (
    DeliverableOutputSerializer,
    DeliverableResubmitSerializer,
    DeliverableReviewSerializer,
    DeliverableSubmitSerializer,
)


class DeliverableSubmitAPIView(APIView):
    """POST /api/deliverables/ -> submit a new deliverable (order designer only)."""

    permission_classes = [IsAuthenticated]
    parser_classes = (MultiPartParser, FormParser)

    def post(self, request):
        serializer = DeliverableSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        deliverable = services.submit_deliverable(
            data["order"],
            request.user,
            data["file"],
            title=data["title"],
            description=data["description"],
        )
        return Response(DeliverableOutputSerializer(deliverable).data, status=status.HTTP_201_CREATED)


class DeliverableDetailAPIView(APIView):
    """GET: one deliverable (participants).
    PATCH: resubmit with optional new file (submitting designer, not once approved).
    DELETE: remove a still pending deliverable (submitting designer).
    """

    permission_classes = [IsAuthenticated]
    parser_classes = (MultiPartParser, FormParser, JSONParser)

    def get(self, request, pk):
        deliverable = services.get_deliverable(pk, request.user)
        return Response(DeliverableOutputSerializer(deliverable).data, status=status.HTTP_200_OK)

    def patch(self, request, pk):
        serializer = DeliverableResubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        deliverable = services.resubmit_deliverable(
            pk,
            request.user,
            upload=data.get("file"),
            title=data.get("title"),
            description=data.get("description"),
        )
        return Response(DeliverableOutputSerializer(deliverable).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        services.delete_deliverable(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DeliverableReviewAPIView(APIView):
    """POST /api/deliverables/{id}/review/ -> APPROVED or REJECTED (order client only)."""

    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        serializer = DeliverableReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        deliverable = services.review_deliverable(
            pk, request.user, data["status"], feedback=data["feedback"]
        )
        return Response(DeliverableOutputSerializer(deliverable).data, status=status.HTTP_200_OK)


class DeliverableFileURLAPIView(APIView):
    """GET /api/deliverables/{id}/file/ -> {"file_url": ...}."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        deliverable = services.get_deliverable(pk, request.user)
        return Response({"file_url": deliverable.file_url}, status=status.HTTP_200_OK)


class DeliverableDownloadAPIView(APIView):
    """GET /api/deliverables/{id}/download/ -> the stored file as an attachment."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        deliverable = services.get_deliverable(pk, request.user)
        if not deliverable_storage.exists(deliverable.file_handle):
            raise NotFoundError("File not found on server.")
        return FileResponse(
            deliverable_storage.open(deliverable.file_handle),
            as_attachment=True,
            filename=os.path.basename(deliverable.file_handle),
        )


class OrderDeliverableListAPIView(generics.ListAPIView):
    """GET /api/orders/{order_id}/deliverables/ -> deliverables of one order."""

    serializer_class = DeliverableOutputSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return services.order_deliverables(self.kwargs["order_id"], self.request.user)


class DesignerDeliverableListAPIView(generics.ListAPIView):
    """GET /api/deliverables/designer/ -> deliverables submitted by the caller."""

    serializer_class = DeliverableOutputSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return services.designer_deliverables(self.request.user)


class ClientDeliverableListAPIView(generics.ListAPIView):
    """GET /api/deliverables/client/ -> deliverables on the caller's orders."""

    serializer_class = DeliverableOutputSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return services.client_deliverables(self.request.user)
