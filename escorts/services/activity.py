"""
Per-session activity counters.

Connected to ``escort_api_event`` when ``ESCORT_SESSION_ACTIVITY`` is on.
Counters live in the caller's Django session and are only written when the
request already carries a session cookie; token clients that send none
never create a session row. The session-stats view opens one with
``start_tracking``.
"""
from __future__ import annotations

import logging

from django.utils import timezone

logger = logging.getLogger(__name__)

SESSION_KEY = 'escort_activity'
RECENT_SUBMISSIONS_LIMIT = 20

COUNTERS = {
    'listed': 'api_list_calls',
    'viewed': 'api_show_calls',
    'created': 'api_submissions',
    'updated': 'api_updates',
    'status_updated': 'api_status_updates',
    'deleted': 'api_deletions',
    'image_uploaded': 'api_image_uploads',
    'lookup_failed': 'api_not_found_errors',
}


def empty_stats() -> dict:
    stats = {name: 0 for name in COUNTERS.values()}
    stats['recent_submissions'] = []
    stats['last_activity'] = None
    return stats


def session_stats(request) -> dict:
    session = getattr(request, 'session', None)
    if session is None:
        return empty_stats()
    stats = empty_stats()
    stats.update(session.get(SESSION_KEY) or {})
    return stats


def start_tracking(request) -> None:
    session = getattr(request, 'session', None)
    if session is not None and not session.session_key:
        session[SESSION_KEY] = empty_stats()


def record_api_event(sender, request=None, event=None, record=None, **kwargs):
    session = getattr(request, 'session', None)
    counter = COUNTERS.get(event)
    if session is None or counter is None or not session.session_key:
        return
    stats = session_stats(request)
    stats[counter] += 1
    stats['last_activity'] = timezone.now().isoformat()
    if event == 'created' and record is not None:
        recent = [
            {'id': record.pk, 'submissionId': record.submission_id, 'at': stats['last_activity']},
            *stats['recent_submissions'],
        ]
        stats['recent_submissions'] = recent[:RECENT_SUBMISSIONS_LIMIT]
    session[SESSION_KEY] = stats
    logger.debug('session activity %s via %s', event, sender)
