import logging

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse

from escorts import envelope

logger = logging.getLogger(__name__)


def health(request):
    """Liveness of this backend; the gateway's probe calls this on the primary API."""
    backend = getattr(settings, 'API_BACKEND_NAME', 'legacy')
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError as exc:
        logger.error('health check database error: %s', exc)
        return JsonResponse(
            envelope.error('Service unhealthy', data={'backend': backend, 'database': 'unavailable'}),
            status=503,
        )
    return JsonResponse(envelope.success('Service healthy', {
        'backend': backend,
        'database': 'connected' if row and row[0] == 1 else 'unknown',
    }))


def not_found(request, exception=None):
    return JsonResponse(envelope.error('Resource not found'), status=404)


def server_error(request):
    return JsonResponse(envelope.error('Internal server error'), status=500)
