"""
Error taxonomy for the escort API and the unified DRF exception handler.

Services raise these exceptions; ``api_exception_handler`` (configured as
``REST_FRAMEWORK["EXCEPTION_HANDLER"]``) renders every error as the
standard envelope. Internal details never reach the client: storage and
unexpected failures are logged here and answered with a generic message.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from . import envelope

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = 'Internal server error'


class ValidationError(APIException):
    """One or more input fields failed validation.

    ``fields`` maps each failing field (wire name) to a message.
    """
    status_code = 422
    default_detail = 'Validation failed'
    default_code = 'validation_failed'

    def __init__(self, fields: dict | None = None, message: str | None = None):
        super().__init__(detail=message or self.default_detail)
        self.fields = fields or {}


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Escort not found'
    default_code = 'not_found'


class StorageError(APIException):
    """The record store failed; the cause is logged, not returned."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = INTERNAL_ERROR_MESSAGE
    default_code = 'storage_error'


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = INTERNAL_ERROR_MESSAGE
    default_code = 'internal_error'


class UpstreamUnavailableError(APIException):
    """The primary API could not be reached."""
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Primary API unavailable'
    default_code = 'upstream_unavailable'


def flatten_errors(detail) -> dict:
    """Reduce DRF's nested error detail to ``{field: message}``."""
    out: dict = {}
    if isinstance(detail, dict):
        for field, messages in detail.items():
            if isinstance(messages, (list, tuple)):
                out[field] = ' '.join(str(m) for m in messages)
            elif isinstance(messages, dict):
                out[field] = ' '.join(str(m) for m in flatten_errors(messages).values())
            else:
                out[field] = str(messages)
    elif isinstance(detail, (list, tuple)):
        out['non_field_errors'] = ' '.join(str(m) for m in detail)
    elif detail:
        out['non_field_errors'] = str(detail)
    return out


def _message_from(data) -> str:
    if isinstance(data, dict) and 'detail' in data:
        return str(data['detail'])
    if isinstance(data, (list, tuple)) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, ValidationError):
        return Response(envelope.error(str(exc.detail), errors=exc.fields), status=exc.status_code)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view') if context else None
        logger.exception('unhandled error in %s', type(view).__name__ if view else 'view', exc_info=exc)
        internal = InternalError()
        return Response(envelope.error(str(internal.detail)), status=internal.status_code)

    if resp.status_code >= 500:
        message = INTERNAL_ERROR_MESSAGE if not isinstance(exc, UpstreamUnavailableError) else str(exc.detail)
        resp.data = envelope.error(message)
    elif resp.status_code == status.HTTP_400_BAD_REQUEST and isinstance(resp.data, dict) and 'detail' not in resp.data:
        # Plain DRF serializer errors raised outside the service layer
        resp.status_code = 422
        resp.data = envelope.error('Validation failed', errors=flatten_errors(resp.data))
    else:
        resp.data = envelope.error(_message_from(resp.data))
    return resp
