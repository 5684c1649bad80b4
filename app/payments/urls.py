"""
URL configuration for the payments app.

Routes:
    - POST create-session/ - Start a top-up
    - POST webhook/ - Stripe webhook endpoint
    - GET topup/<uuid>/ - Top-up status
    - GET user/<user_id>/ - Top-up history

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.
"""

from django.urls import path

from payments.views import CreateTopupSessionView, TopupHistoryView, TopupStatusView
from payments.webhooks.views import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("create-session/", CreateTopupSessionView.as_view(), name="create_session"),
    path("webhook/", stripe_webhook, name="stripe_webhook"),
    path("topup/<uuid:topup_id>/", TopupStatusView.as_view(), name="topup_status"),
    path("user/<int:user_id>/", TopupHistoryView.as_view(), name="topup_history"),
]
