"""
URL configuration for the primary API process.
"""
from django.urls import include, path

from escorts.routers import primary_urlpatterns
from escorts.views import health

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('api/health', health.health),
    path('api/', include(primary_urlpatterns)),
]

handler404 = 'escorts.views.health.not_found'
handler500 = 'escorts.views.health.server_error'
