import json
import logging
import re

from django.conf import settings
from django.http import HttpResponse, JsonResponse
from prometheus_client import Counter

from . import envelope
from .exceptions import UpstreamUnavailableError
from .models import Escort
from .routing.decision import OVERRIDE_QUERY_PARAM, PRIMARY, RoutingDecision, select_backend
from .routing.probe import get_probe_cache
from .services.primary_client import FORWARDED_HEADERS, PrimaryApiClient
from .signals import escort_api_event

logger = logging.getLogger(__name__)

ROUTING_DECISIONS = Counter(
    'escort_routing_decisions_total',
    'Backend routing decisions for escort API requests',
    ['backend', 'rule'],
)

# Forwarded routes -> event per method, matching what the legacy views emit.
# A 404 on a single-record route counts as a failed lookup.
FORWARDED_EVENTS = [
    (re.compile(r'^/api/escort$'), False, {'GET': 'listed', 'POST': 'created'}),
    (re.compile(r'^/api/escort/\d+$'), True,
     {'GET': 'viewed', 'PUT': 'updated', 'PATCH': 'updated', 'DELETE': 'deleted'}),
    (re.compile(r'^/api/escort/\d+/status$'), True, {'PATCH': 'status_updated'}),
    (re.compile(r'^/api/escort/\d+/image$'), True, {'GET': None, 'POST': 'image_uploaded'}),
]


def forwarded_event(method: str, path: str, status_code: int):
    for pattern, single_record, events in FORWARDED_EVENTS:
        if pattern.match(path) and method in events:
            if single_record and status_code == 404:
                return 'lookup_failed'
            return events[method] if 200 <= status_code < 300 else None
    return None


def _client_ip(request) -> str:
    return request.META.get('REMOTE_ADDR', '')


class BackendRoutingMiddleware:
    """Route escort API requests to the legacy views or the primary API.

    Requests outside ``ROUTED_PATH_PREFIXES`` pass through untouched. For
    routed requests the decision is made once, stored on
    ``request.routing_decision`` and reported in the ``X-API-Backend`` and
    ``X-Routing-Reason`` response headers.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        prefixes = getattr(settings, 'ROUTED_PATH_PREFIXES', ())
        if not any(path.startswith(p) for p in prefixes):
            return self.get_response(request)

        decision = self.decide(request)
        request.routing_decision = decision
        ROUTING_DECISIONS.labels(backend=decision.backend, rule=decision.rule).inc()
        logger.debug(
            'route %s %s -> %s (%s) client=%s',
            request.method, path, decision.backend, decision.reason, _client_ip(request),
        )

        if decision.backend == PRIMARY:
            response = self.forward(request)
            self.record_forwarded(request, response)
        else:
            response = self.get_response(request)
        return self.annotate(response, decision)

    def decide(self, request) -> RoutingDecision:
        return select_backend(
            request.headers,
            request.GET,
            enabled=settings.PRIMARY_API_ENABLED,
            auto_detect=settings.PRIMARY_API_AUTO_DETECT,
            probe=lambda: get_probe_cache().get_or_refresh(),
        )

    def forward(self, request):
        headers = {h: request.headers[h] for h in FORWARDED_HEADERS if h in request.headers}
        forwarded_for = request.headers.get('X-Forwarded-For')
        client = _client_ip(request)
        headers['X-Forwarded-For'] = f'{forwarded_for}, {client}' if forwarded_for else client
        params = [
            (k, v) for k, values in request.GET.lists() if k != OVERRIDE_QUERY_PARAM for v in values
        ]
        try:
            upstream = PrimaryApiClient().forward(
                request.method,
                request.path,
                params=params,
                body=request.body,
                headers=headers,
            )
        except UpstreamUnavailableError as exc:
            return JsonResponse(envelope.error(str(exc.detail)), status=exc.status_code)
        response = HttpResponse(
            upstream.content,
            status=upstream.status_code,
            content_type=upstream.headers.get('Content-Type', 'application/json'),
        )
        for name in ('WWW-Authenticate', 'Retry-After'):
            if name in upstream.headers:
                response[name] = upstream.headers[name]
        return response

    def record_forwarded(self, request, response) -> None:
        """Emit the activity event the primary API answered on our behalf."""
        event = forwarded_event(request.method, request.path, response.status_code)
        if event is None:
            return
        record = self._created_record(response) if event == 'created' else None
        escort_api_event.send(sender=PRIMARY, request=request, event=event, record=record)

    @staticmethod
    def _created_record(response):
        try:
            data = json.loads(response.content).get('data') or {}
        except (ValueError, AttributeError):
            return None
        if not isinstance(data, dict) or 'id' not in data:
            return None
        return Escort(pk=data['id'], submission_id=data.get('submissionId', ''))

    def annotate(self, response, decision: RoutingDecision):
        for name, value in decision.headers().items():
            response[name] = value
        if settings.ROUTING_FOLD_METADATA:
            self._fold_metadata(response, decision)
        return response

    def _fold_metadata(self, response, decision: RoutingDecision) -> None:
        if getattr(response, 'streaming', False):
            return
        if not response.get('Content-Type', '').startswith('application/json'):
            return
        try:
            body = json.loads(response.content)
        except ValueError:
            return
        if not isinstance(body, dict) or 'status' not in body:
            return
        meta = dict(body.get('meta') or {})
        meta['routing'] = {'backend': decision.backend, 'reason': decision.reason}
        rebuilt = {k: v for k, v in body.items() if k != 'errors'}
        rebuilt['meta'] = meta
        if 'errors' in body:
            rebuilt['errors'] = body['errors']
        response.content = json.dumps(rebuilt).encode()
