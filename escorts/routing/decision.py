"""
Backend selection.

The rules are evaluated in order and the first match wins:

1. ``X-Use-Primary-API`` request header
2. ``use_primary_api`` query parameter
3. ``PRIMARY_API_ENABLED`` off selects legacy
4. ``PRIMARY_API_AUTO_DETECT`` on asks the liveness probe
5. otherwise primary
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from django.utils import timezone

PRIMARY = 'primary'
LEGACY = 'legacy'

OVERRIDE_HEADER = 'X-Use-Primary-API'
OVERRIDE_QUERY_PARAM = 'use_primary_api'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def is_truthy(value) -> bool:
    return str(value).strip().lower() in TRUE_VALUES


@dataclass(frozen=True)
class RoutingDecision:
    backend: str
    reason: str
    decided_at: datetime = field(default_factory=timezone.now)

    @property
    def rule(self) -> str:
        return self.reason.split(':', 1)[0]

    def headers(self) -> dict:
        return {'X-API-Backend': self.backend, 'X-Routing-Reason': self.reason}


def _explicit(rule: str, value) -> RoutingDecision:
    use_primary = is_truthy(value)
    return RoutingDecision(PRIMARY if use_primary else LEGACY, f"{rule}:{'true' if use_primary else 'false'}")


def select_backend(headers, query, *, enabled: bool, auto_detect: bool,
                   probe: Callable[[], bool]) -> RoutingDecision:
    """Pick a backend for one request. ``probe`` is only called for rule 4."""
    header_value = headers.get(OVERRIDE_HEADER)
    if header_value is not None:
        return _explicit('header_explicit', header_value)

    query_value = query.get(OVERRIDE_QUERY_PARAM)
    if query_value is not None:
        return _explicit('query_param', query_value)

    if not enabled:
        return RoutingDecision(LEGACY, 'env_disabled')

    if auto_detect:
        if probe():
            return RoutingDecision(PRIMARY, 'auto_detect:available')
        return RoutingDecision(LEGACY, 'auto_detect:unavailable')

    return RoutingDecision(PRIMARY, 'env_enabled')
