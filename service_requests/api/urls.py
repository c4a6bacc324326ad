from django.urls import path
from .views import (
    CategoryListAPIView,
    DesignerServiceListAPIView,
    ServiceApplyAPIView,
    ServiceCancelAPIView,
    ServiceRequestDetailAPIView,
    ServiceRequestListCreateAPIView,
)

urlpatterns = [
    path("categories/", CategoryListAPIView.as_view(), name="category-list"),
    path("services/", ServiceRequestListCreateAPIView.as_view(), name="service-list"),
    path("services/<int:pk>/", ServiceRequestDetailAPIView.as_view(), name="service-detail"),
    path("designer/services/", DesignerServiceListAPIView.as_view(), name="designer-service-list"),
    path("designer/services/<int:pk>/apply/", ServiceApplyAPIView.as_view(), name="service-apply"),
    path("designer/services/<int:pk>/cancel/", ServiceCancelAPIView.as_view(), name="service-cancel"),
]
