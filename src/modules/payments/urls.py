"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import PaymentConfirmView

urlpatterns = [
    path("payments/confirm/", PaymentConfirmView.as_view(), name="payment-confirm"),
]
