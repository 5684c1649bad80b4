"""
URL configuration for the wallet top-up service.

URL Structure:
    /                              - ReDoc API documentation
    /schema/                       - OpenAPI schema (YAML)
    /admin/                        - Django admin interface (read-only views)
    /api/v1/health/                - Health check endpoint
    /api/v1/payments/              - Top-up endpoints
        create-session/            - Start a top-up (POST)
        webhook/                   - Stripe webhook endpoint (POST)
        topup/{id}/                - Top-up status
        user/{user_id}/            - Top-up history for a user
    /api/v1/crypto/                - Price feed endpoints
        price/                     - Latest price for a symbol
        prices/                    - Latest prices for several symbols
        ticker/                    - 24h ticker statistics
        exchange-info/             - Trading pairs
        convert/                   - Convert an amount between assets (POST)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    path("health/", health_check, name="health_check"),
    path("payments/", include("payments.urls")),
    path("crypto/", include("market.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Wallet Top-Up Admin"
admin.site.site_title = "Wallet Admin"
admin.site.index_title = "Wallets, top-ups and ledger"
