"""
Combined session statistics for the gateway.

Merges the caller's session activity counters with the primary API's
dashboard statistics. When the primary API cannot be reached the local
part is still returned, with status ``error`` and HTTP 502.
"""
from __future__ import annotations

import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from escorts import envelope
from escorts.exceptions import UpstreamUnavailableError
from escorts.services import activity
from escorts.services.primary_client import PrimaryApiClient

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([AllowAny])
def session_stats(request):
    activity.start_tracking(request)
    local = activity.session_stats(request)
    headers = {}
    if 'Authorization' in request.headers:
        headers['Authorization'] = request.headers['Authorization']
    try:
        upstream = PrimaryApiClient().dashboard_stats(headers=headers)
    except UpstreamUnavailableError as exc:
        logger.warning('combined session stats without primary API data: %s', exc.__cause__ or exc)
        return Response(
            envelope.error(
                'Primary API stats unavailable, returning local stats only',
                data={'sessionStats': local, 'primaryApiStats': None},
            ),
            status=exc.status_code,
        )
    return Response(envelope.success('Combined statistics retrieved successfully', {
        'sessionStats': local,
        'primaryApiStats': upstream.get('data'),
    }))
