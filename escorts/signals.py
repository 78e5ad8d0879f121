"""Signals emitted at the API boundary.

``escort_api_event`` is sent by both API flavours after each escort
operation with ``request``, ``event`` and (where there is one) ``record``.
Receivers are observers only; the record service never depends on them.
"""
from django.dispatch import Signal

escort_api_event = Signal()
