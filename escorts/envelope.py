"""Response envelope shared by both API flavours.

Keys always appear in the order ``status``, ``message``, ``data``,
``meta``, ``errors``; keys without a value are left out.
"""
from __future__ import annotations

from typing import Any, Optional

STATUS_SUCCESS = 'success'
STATUS_ERROR = 'error'


def _build(status: str, message: str, data: Any = None, meta: Optional[dict] = None,
           errors: Optional[dict] = None) -> dict:
    body: dict = {'status': status, 'message': message}
    if data is not None:
        body['data'] = data
    if meta:
        body['meta'] = meta
    if errors:
        body['errors'] = errors
    return body


def success(message: str, data: Any = None, meta: Optional[dict] = None) -> dict:
    return _build(STATUS_SUCCESS, message, data=data, meta=meta)


def error(message: str, errors: Optional[dict] = None, data: Any = None) -> dict:
    return _build(STATUS_ERROR, message, data=data, errors=errors)


def page_meta(page: int, page_size: int, total: int) -> dict:
    total_pages = (total + page_size - 1) // page_size if page_size else 0
    return {
        'currentPage': page,
        'totalPages': total_pages,
        'pageSize': page_size,
        'total': total,
    }
