"""
URL configuration for the gateway process.

Escort routes under ``/api/`` pass through ``BackendRoutingMiddleware``
and are answered by the legacy views only when the legacy backend is
selected. ``/api/legacy/`` always reaches the legacy views directly.
OpenAPI documentation is exposed at ``/swagger/`` and ``/redoc/``.
"""
from django.contrib import admin
from django.urls import include, path

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

from escorts.routers import legacy_urlpatterns
from escorts.views import health, session_stats

# API metadata for Swagger/OpenAPI documentation
api_info = openapi.Info(
    title="IGD Escort Registration API",
    default_version='v1',
    description="Escort registration records for the emergency department.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('django_prometheus.urls')),
    path('api/health', health.health),
    path('api/session-stats', session_stats.session_stats),
    path('api/', include(legacy_urlpatterns)),
    path('api/legacy/', include(legacy_urlpatterns)),
    # Swagger and ReDoc
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]

handler404 = 'escorts.views.health.not_found'
handler500 = 'escorts.views.health.server_error'
