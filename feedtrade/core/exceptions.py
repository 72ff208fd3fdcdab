import logging

from django.db import DatabaseError, IntegrityError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Business rule violation surfaced to API callers as a 400"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class AccountNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class InvalidOperation(DomainError):
    pass


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Domain errors become {'error': ...} responses. Constraint violations are a 409;
    other storage errors are logged and reported as a transient failure instead of
    a bare 500.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get('view')
    view_name = getattr(view, '__name__', None) or view.__class__.__name__ if view else 'unknown'

    if isinstance(exc, DomainError):
        return Response({'error': exc.message}, status=exc.status_code)

    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error in {view_name}: {exc}")
        return Response(
            {'error': 'The change conflicts with existing data.'},
            status=status.HTTP_409_CONFLICT,
        )

    if isinstance(exc, DatabaseError):
        logger.error(f"Database error in {view_name}: {exc}", exc_info=True)
        return Response(
            {'error': 'The data store is temporarily unavailable. Please try again.'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return None
