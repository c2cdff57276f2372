"""
Top-level routes: the monitoring API at the root, the Django admin, and
generated API docs (``/swagger/``, ``/redoc/``, raw schema at
``/swagger.json``).
"""
from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_info = openapi.Info(
    title="Ward Monitor API",
    default_version="v1",
    description=(
        "Patients, rooms, bedside monitoring devices and their alerts. "
        "Authenticate with `Authorization: Bearer <accessToken>` from /api/auth/login."
    ),
)

schema_view = get_schema_view(api_info, public=True, permission_classes=(permissions.AllowAny,))

docs_urlpatterns = [
    path("swagger.json", schema_view.without_ui(cache_timeout=0), name="schema-json"),
    path("swagger/", schema_view.with_ui("swagger", cache_timeout=0), name="schema-swagger-ui"),
    path("redoc/", schema_view.with_ui("redoc", cache_timeout=0), name="schema-redoc"),
]

urlpatterns = [
    path("", include("monitoring.routers")),
    path("admin/", admin.site.urls),
    *docs_urlpatterns,
]
