"""
HTTP client for the primary API service.

Used by the routing middleware to forward requests, by the liveness probe,
by the combined session statistics view and by ``check_primary_api``.
Network failures are raised as ``UpstreamUnavailableError``.
"""
from __future__ import annotations

import logging
from typing import Optional

import requests
from django.conf import settings

from escorts.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

HEALTH_PATH = '/api/health'
FORWARDED_HEADERS = ('Content-Type', 'Accept', 'Authorization', 'Accept-Language')


class PrimaryApiClient:

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.PRIMARY_API_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.PRIMARY_API_FORWARD_TIMEOUT
        self.session = session or requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def is_available(self, timeout: Optional[float] = None) -> bool:
        """True only if the health endpoint answers 2xx within the timeout."""
        timeout = timeout if timeout is not None else settings.PRIMARY_API_TIMEOUT
        try:
            resp = self.session.get(self.url(HEALTH_PATH), timeout=timeout)
        except requests.RequestException as exc:
            logger.warning('primary API probe failed: %s', exc)
            return False
        ok = 200 <= resp.status_code < 300
        if ok:
            logger.debug('primary API probe ok (%s)', resp.status_code)
        else:
            logger.warning('primary API probe returned %s', resp.status_code)
        return ok

    def forward(self, method: str, path: str, *, params=None, body: bytes = b'',
                headers: Optional[dict] = None) -> requests.Response:
        try:
            return self.session.request(
                method,
                self.url(path),
                params=params,
                data=body or None,
                headers=headers or {},
                timeout=self.timeout,
                allow_redirects=False,
            )
        except requests.RequestException as exc:
            logger.error('forward %s %s to primary API failed: %s', method, path, exc)
            raise UpstreamUnavailableError() from exc

    def get_json(self, path: str, *, params=None, headers: Optional[dict] = None) -> dict:
        resp = self.forward('GET', path, params=params, headers=headers)
        try:
            resp.raise_for_status()
            return resp.json()
        except (requests.HTTPError, ValueError) as exc:
            logger.error('primary API GET %s answered %s: %s', path, resp.status_code, exc)
            raise UpstreamUnavailableError() from exc

    def health(self) -> dict:
        return self.get_json(HEALTH_PATH)

    def dashboard_stats(self, headers: Optional[dict] = None) -> dict:
        return self.get_json('/api/dashboard/stats', headers=headers)

    def list_escorts(self, params=None, headers: Optional[dict] = None) -> dict:
        return self.get_json('/api/escort', params=params, headers=headers)
