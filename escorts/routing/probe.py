"""
Cached liveness probe for the primary API.

``LivenessProbeCache`` keeps the last probe result with the time it was
taken. Within ``interval`` seconds every caller gets the cached value;
after that, the first caller probes while the others wait on the lock and
reuse its result. Failed probes are cached like successful ones.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


class LivenessProbeCache:

    def __init__(self, probe: Callable[[], bool], interval: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        self._probe = probe
        self._interval = interval
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[bool] = None
        self._checked_at: Optional[float] = None

    def get_or_refresh(self, now: Optional[float] = None) -> bool:
        with self._lock:
            now = self._clock() if now is None else now
            if self._value is not None and now - self._checked_at < self._interval:
                return self._value
            try:
                value = bool(self._probe())
            except Exception:
                logger.exception('liveness probe raised; treating primary API as unavailable')
                value = False
            self._value = value
            self._checked_at = now
            return value

    def reset(self) -> None:
        with self._lock:
            self._value = None
            self._checked_at = None


_cache: Optional[LivenessProbeCache] = None
_cache_lock = threading.Lock()


def _default_probe() -> bool:
    from escorts.services.primary_client import PrimaryApiClient

    return PrimaryApiClient().is_available(timeout=settings.PRIMARY_API_TIMEOUT)


def get_probe_cache() -> LivenessProbeCache:
    """Process-wide probe cache, built from settings on first use."""
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = LivenessProbeCache(_default_probe, interval=settings.PRIMARY_API_PROBE_INTERVAL)
        return _cache


def set_probe_cache(cache: Optional[LivenessProbeCache]) -> None:
    global _cache
    with _cache_lock:
        _cache = cache


def reset_probe_cache() -> None:
    set_probe_cache(None)
