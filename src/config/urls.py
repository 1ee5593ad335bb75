from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

API_MODULES = ["products", "cart", "orders", "payments"]

urlpatterns = [
    path("", include("modules.core.urls")),
    *[path("api/v1/", include(f"modules.{name}.urls")) for name in API_MODULES],
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]
