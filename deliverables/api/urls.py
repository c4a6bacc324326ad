from django.urls import path
from .views import (
    ClientDeliverableListAPIView,
    DeliverableDetailAPIView,
    DeliverableDownloadAPIView,
    DeliverableFileURLAPIView,
    DeliverableReviewAPIView,
    DeliverableSubmitAPIView,
    DesignerDeliverableListAPIView,
    OrderDeliverableListAPIView,
)

urlpatterns = [
    path("deliverables/", DeliverableSubmitAPIView.as_view(), name="deliverable-submit"),
    path("deliverables/designer/", DesignerDeliverableListAPIView.as_view(), name="deliverable-designer-list"),
    path("deliverables/client/", ClientDeliverableListAPIView.as_view(), name="deliverable-client-list"),
    path("deliverables/<int:pk>/", DeliverableDetailAPIView.as_view(), name="deliverable-detail"),
    path("deliverables/<int:pk>/review/", DeliverableReviewAPIView.as_view(), name="deliverable-review"),
    path("deliverables/<int:pk>/file/", DeliverableFileURLAPIView.as_view(), name="deliverable-file"),
    path("deliverables/<int:pk>/download/", DeliverableDownloadAPIView.as_view(), name="deliverable-download"),
    path("orders/<int:order_id>/deliverables/", OrderDeliverableListAPIView.as_view(), name="order-deliverables"),
]
