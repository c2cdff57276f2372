"""
Error taxonomy and the single DRF exception handler.

Views and services raise one of the :class:`ApiError` subclasses; the
handler turns those, DRF's own exceptions, and stray database errors into
the same ``{'ok': False, 'error': {...}}`` envelope.
"""
from __future__ import annotations

import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class ApiError(exceptions.APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error.'
    default_code = 'internal'

    def __init__(self, message: str | None = None, *, cause=None):
        super().__init__(detail=message or self.default_detail, code=self.default_code)
        self.message = str(self.detail)
        self.cause = cause


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'


class Unauthorized(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Unauthorized.'
    default_code = 'unauthorized'


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class Conflict(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


class Internal(ApiError):
    pass


def _describe_cause(cause):
    if cause is None:
        return None
    if isinstance(cause, (dict, list, str)):
        return cause
    return str(cause)


def _translate(exc):
    """Map non-DRF errors onto the taxonomy, or return None."""
    if isinstance(exc, DjangoValidationError):
        cause = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        return BadRequest('Validation failed.', cause=cause)
    if isinstance(exc, IntegrityError):
        if 'unique' in str(exc).lower() or 'duplicate' in str(exc).lower():
            return Conflict('Resource already exists.', cause=str(exc))
        return BadRequest('Integrity constraint violated.', cause=str(exc))
    if isinstance(exc, (ObjectDoesNotExist, Http404)):
        return NotFound(str(exc) or None)
    return None


def api_exception_handler(exc, context):
    translated = _translate(exc)
    if translated is not None:
        exc = translated

    # rest_framework.views loads the authentication classes, which import this module.
    from rest_framework.views import exception_handler as drf_exception_handler

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('Unhandled error in %s', getattr(view, '__name__', view), exc_info=exc)
        payload = {'code': 'internal', 'statusCode': 500, 'message': 'Internal server error.'}
        return Response({'ok': False, 'error': payload}, status=500)

    if isinstance(exc, ApiError):
        code, message, cause = exc.default_code, exc.message, _describe_cause(exc.cause)
    elif isinstance(exc, exceptions.ValidationError):
        code, message, cause = 'bad_request', 'Validation failed.', resp.data
    else:
        detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
        codes = exc.get_codes() if isinstance(exc, exceptions.APIException) else None
        code = codes if isinstance(codes, str) else 'api_error'
        message, cause = str(detail), None

    if resp.status_code >= 500:
        logger.error('%s: %s', code, message, exc_info=exc)

    payload = {'code': code, 'statusCode': resp.status_code, 'message': message}
    if cause is not None:
        payload['cause'] = cause
    resp.data = {'ok': False, 'error': payload}
    return resp
