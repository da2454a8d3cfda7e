"""Error types and the API exception handler.

Every error leaves the API as ``{"error": <message>}``; validation failures
also carry the field ``details``.
"""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with current state.'
    default_code = 'conflict'


def _message(detail) -> str:
    if isinstance(detail, list) and detail:
        return _message(detail[0])
    if isinstance(detail, dict):
        return detail.get('detail', detail.get('error', 'Request failed'))
    return str(detail)


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        # Anything DRF does not know about: surface the raw message.
        view = context.get('view')
        logger.exception("Unhandled error in %s: %s", view.__class__.__name__ if view else 'view', exc)
        set_rollback()
        return Response({'error': str(exc)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, ValidationError):
        response.data = {'error': 'Validation failed', 'details': exc.detail}
    else:
        response.data = {'error': _message(getattr(exc, 'detail', str(exc)))}
    return response
