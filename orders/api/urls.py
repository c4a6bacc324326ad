from django.urls import path
from .views import OrderDetailAPIView, OrderListAPIView, OrderStatusUpdateAPIView, PaidOrderListAPIView

urlpatterns = [
    path("orders/", OrderListAPIView.as_view(), name="order-list"),
    path("orders/paid/", PaidOrderListAPIView.as_view(), name="order-paid-list"),
    path("orders/<int:pk>/", OrderDetailAPIView.as_view(), name="order-detail"),
    path("orders/<int:pk>/status/", OrderStatusUpdateAPIView.as_view(), name="order-status"),
]
