"""
URL mappings for both escort API flavours.

``legacy_urlpatterns`` are the function views served by the gateway;
``primary_urlpatterns`` are the class views served by the primary API
process. Paths are identical so the gateway can forward a request path
unchanged. Trailing slashes are deliberately omitted.
"""
from django.urls import path

from .views import legacy, primary

legacy_urlpatterns = [
    path('escort', legacy.escort_collection),
    path('escort/<int:pk>', legacy.escort_detail),
    path('escort/<int:pk>/status', legacy.escort_status),
    path('escort/<int:pk>/image', legacy.escort_image),
    path('dashboard/stats', legacy.dashboard_stats),
]

primary_urlpatterns = [
    path('escort', primary.EscortCollectionView.as_view()),
    path('escort/<int:pk>', primary.EscortDetailView.as_view()),
    path('escort/<int:pk>/status', primary.EscortStatusView.as_view()),
    path('escort/<int:pk>/image', primary.EscortImageView.as_view()),
    path('dashboard/stats', primary.DashboardStatsView.as_view()),
]
