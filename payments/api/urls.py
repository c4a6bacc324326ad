from django.urls import path
from .views import OrderPaymentAPIView, PaymentListAPIView, PaymentNotificationAPIView, PaymentTokenAPIView

urlpatterns = [
    path("payments/", PaymentListAPIView.as_view(), name="payment-list"),
    path("payments/token/", PaymentTokenAPIView.as_view(), name="payment-token"),
    path("payments/notification/", PaymentNotificationAPIView.as_view(), name="payment-notification"),
    path("payments/order/<int:order_id>/", OrderPaymentAPIView.as_view(), name="payment-order"),
]
