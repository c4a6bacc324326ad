"""Service requests API views.

Clients list, create, patch and delete their own requests. Designers browse
open requests (optionally by category), apply for one, which creates the
Order, and cancel a request assigned to them. Categories are public.
"""

from rest_framework import generics, status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from service_requests import services
from service_requests.models import Category
from .permissions import IsClientUser, IsDesignerUser
from .serializers import (
    AppliedOrderSerializer,
    CategorySerializer,
    ServiceRequestInputSerializer,
    ServiceRequestOutputSerializer,
)


# ----------------------------- helpers (module-level) -----------------------------

PATCHABLE_FIELDS = {"category", "title", "description", "budget", "deadline", "attachments"}


def _validate_patch_fields(data):
    """Reject fields that cannot be patched (status, client, assignment...)."""
    extra = set(data.keys()) - PATCHABLE_FIELDS
    if extra:
        return Response(
            {"detail": f"Invalid fields: {', '.join(sorted(extra))}."},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return None


def _category_filter(params):
    value = params.get("category")
    if value is None:
        return None
    if not value.isdigit():
        raise ValidationError({"category": "Must be an integer."})
    return int(value)


# --------------------------------------- views ---------------------------------------

class CategoryListAPIView(generics.ListAPIView):
    """GET /api/categories/ -> all categories (public)."""

    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [AllowAny]


class ServiceRequestListCreateAPIView(generics.ListCreateAPIView):
    """GET: list the authenticated client's own requests.
    POST: create a new request (client-only).
    """

    def get_permissions(self):
        """Client-only on POST, otherwise just authenticated."""
        if self.request.method == "POST":
            return [IsAuthenticated(), IsClientUser()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        return ServiceRequestOutputSerializer if self.request.method == "GET" else ServiceRequestInputSerializer

    def get_queryset(self):
        return services.client_service_requests(self.request.user).prefetch_related("applications")

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        service = services.create_service_request(request.user, serializer.validated_data)
        return Response(ServiceRequestOutputSerializer(service).data, status=status.HTTP_201_CREATED)


class ServiceRequestDetailAPIView(APIView):
    """GET: retrieve a request (owner or any designer).
    PATCH: partial update (owner only; budget/deadline frozen once assigned).
    DELETE: remove a request that is still open (owner only).
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        service = services.get_service_request(pk, request.user)
        return Response(ServiceRequestOutputSerializer(service).data, status=status.HTTP_200_OK)

    def patch(self, request, pk):
        bad = _validate_patch_fields(request.data)
        if bad is not None:
            return bad
        serializer = ServiceRequestInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        service = services.update_service_request(pk, request.user, serializer.validated_data)
        return Response(ServiceRequestOutputSerializer(service).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        services.delete_service_request(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DesignerServiceListAPIView(generics.ListAPIView):
    """GET /api/designer/services/[?category=<id>] -> open requests for designers."""

    serializer_class = ServiceRequestOutputSerializer
    permission_classes = [IsAuthenticated, IsDesignerUser]

    def get_queryset(self):
        category_id = _category_filter(self.request.query_params)
        return services.browsable_service_requests(
            self.request.user, category_id=category_id
        ).prefetch_related("applications")


class ServiceApplyAPIView(APIView):
    """POST /api/designer/services/{id}/apply/ -> assign the request, create the order."""

    permission_classes = [IsAuthenticated, IsDesignerUser]

    def post(self, request, pk):
        order = services.apply_for_service(pk, request.user)
        return Response(
            {
                "detail": "Application submitted successfully. Order created.",
                "order": AppliedOrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )


class ServiceCancelAPIView(APIView):
    """POST /api/designer/services/{id}/cancel/ -> cancel (assigned designer only)."""

    permission_classes = [IsAuthenticated, IsDesignerUser]

    def post(self, request, pk):
        service = services.cancel_service(pk, request.user)
        return Response(ServiceRequestOutputSerializer(service).data, status=status.HTTP_200_OK)
