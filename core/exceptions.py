"""
BRILLPRIME - Error taxonomy and API error envelope

Domain services raise the exceptions below. The DRF exception handler turns
them (and DRF's own errors) into:

    {"success": false, "error": "<message>", "code": "<CODE>"}   HTTP 400

Nothing is retried here; the mobile client decides what to show and whether
to try again.
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.settings import api_settings

logger = logging.getLogger(__name__)


class BrillPrimeError(Exception):
    """Base class for errors reported to API callers."""

    code = 'ERROR'
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(BrillPrimeError):
    """Missing or invalid caller identity, or caller not allowed."""
    code = 'UNAUTHORIZED'
    default_message = 'Unauthorized'


class InvalidInput(BrillPrimeError):
    """Malformed request payload (coordinates, amounts, identifiers)."""
    code = 'INVALID_INPUT'
    default_message = 'Invalid input'


class InvalidTransition(BrillPrimeError):
    """Requested order status is not reachable from the current one."""
    code = 'INVALID_TRANSITION'
    default_message = 'Invalid status transition'


class NotFound(BrillPrimeError):
    """Order, user or driver does not exist."""
    code = 'NOT_FOUND'
    default_message = 'Not found'


class UpstreamFailure(BrillPrimeError):
    """Database or dispatch failure while serving the request."""
    code = 'UPSTREAM_FAILURE'
    default_message = 'Upstream service failure'


def _flatten_detail(detail) -> str:
    """Render DRF error details (str, list or dict) as a single line."""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            message = _flatten_detail(value)
            if field == api_settings.NON_FIELD_ERRORS_KEY:
                parts.append(message)
            else:
                parts.append(f"{field}: {message}")
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return '; '.join(_flatten_detail(item) for item in detail)
    return str(detail)


def to_brillprime_error(exc):
    """
    Map an exception raised inside a view to the error taxonomy.

    Returns None for exceptions that are not API errors (those propagate).
    """
    if isinstance(exc, BrillPrimeError):
        return exc

    if isinstance(exc, (
        exceptions.NotAuthenticated,
        exceptions.AuthenticationFailed,
        exceptions.PermissionDenied,
        DjangoPermissionDenied,
    )):
        detail = getattr(exc, 'detail', None)
        return Unauthorized(_flatten_detail(detail) if detail else None)

    if isinstance(exc, (Http404, exceptions.NotFound)):
        detail = getattr(exc, 'detail', None)
        return NotFound(_flatten_detail(detail) if detail else None)

    if isinstance(exc, exceptions.APIException):
        return InvalidInput(_flatten_detail(exc.detail))

    return None


def envelope_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER producing the JSON error envelope."""
    error = to_brillprime_error(exc)
    if error is None:
        return None

    view = context.get('view')
    logger.warning(
        f"[API] {error.code} in {view.__class__.__name__ if view else '?'}: {error.message}"
    )

    return Response(
        {
            'success': False,
            'error': error.message,
            'code': error.code,
        },
        status=status.HTTP_400_BAD_REQUEST,
    )
