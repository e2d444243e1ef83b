"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import CreatePaymentIntentView, VerifyPaymentView

urlpatterns = [
    path(
        "payments/create-razorpay-order/",
        CreatePaymentIntentView.as_view(),
        name="payment-create-intent",
    ),
    path(
        "payments/verify-payment/",
        VerifyPaymentView.as_view(),
        name="payment-verify",
    ),
]
