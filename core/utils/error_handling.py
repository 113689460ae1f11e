# core/utils/error_handling.py
"""
Turn domain exceptions into responses.

``exception_payload`` is the one place that decides the JSON body and status
for a ``SchoolManagementException``; the DRF handler in ``core.api`` and
``handle_api_exception`` both call it. HTML and download views use
``handle_view_exception`` instead, which flashes a message and redirects.
"""

import logging
from functools import wraps

from django.contrib import messages
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.http import Http404, JsonResponse
from django.shortcuts import redirect

from ..exceptions import (
    BulkUploadError,
    DataValidationError,
    DatabaseOperationException,
    GradeValidationError,
    PermissionDeniedError,
    SchoolManagementException,
)

logger = logging.getLogger(__name__)

# How many upload row errors are flashed before summarising the rest
FLASHED_ROW_ERRORS = 3


def exception_payload(exc):
    """Return ``(payload, status)`` for a domain exception, ``(None, None)`` otherwise."""
    if not isinstance(exc, SchoolManagementException):
        return None, None

    if isinstance(exc, PermissionDeniedError):
        error, code, status = 'Permission denied', 'permission_denied', 403
    elif isinstance(exc, (GradeValidationError, DataValidationError)):
        error, code, status = 'Validation failed', 'validation_error', 400
    elif isinstance(exc, BulkUploadError):
        error, code, status = 'Bulk upload failed', 'bulk_upload_error', 400
    else:
        error, code, status = 'Business logic error', 'business_error', 400

    payload = {'error': error, 'message': exc.message, 'code': code}
    if code == 'validation_error':
        payload['details'] = getattr(exc, 'field_errors', None) or getattr(exc, 'validation_errors', {})
    elif code == 'bulk_upload_error':
        payload['row_errors'] = exc.row_errors
    return payload, status


def _back(request):
    return redirect(request.META.get('HTTP_REFERER', 'dashboard'))


def _flash_view_error(request, exc):
    """Flash ``exc`` for the user and pick where to send them."""
    if isinstance(exc, PermissionDeniedError):
        messages.error(request, exc.message)
        return redirect('dashboard')

    if isinstance(exc, GradeValidationError):
        if not exc.field_errors:
            messages.error(request, exc.message)
        for learner, problem in exc.field_errors.items():
            messages.error(request, f"{learner}: {problem}")
        return _back(request)

    messages.error(request, exc.message)
    if isinstance(exc, BulkUploadError):
        shown = exc.row_errors[:FLASHED_ROW_ERRORS]
        for row_error in shown:
            messages.warning(request, row_error)
        hidden = len(exc.row_errors) - len(shown)
        if hidden:
            messages.warning(request, f"{hidden} more row(s) had errors")
    return _back(request)


def handle_view_exception(view_func):
    """Report failures of an HTML or download view through Django messages."""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except SchoolManagementException as exc:
            return _flash_view_error(request, exc)
        except Http404:
            logger.warning(f"{request.user} asked for missing resource {request.path}")
            messages.error(request, "That page or record does not exist.")
            return redirect('dashboard')
        except ValidationError as exc:
            logger.warning(f"Rejected input in {view_func.__name__}: {exc}")
            messages.error(request, "Some of the submitted values are not valid.")
            return _back(request)
        except DatabaseError:
            logger.exception(f"Database failure in {view_func.__name__}")
            messages.error(request, "The database could not complete the request. Try again shortly.")
            return redirect('dashboard')

    return wrapper


def handle_api_exception(api_func):
    """JSON counterpart of ``handle_view_exception`` for plain Django views."""
    @wraps(api_func)
    def wrapper(request, *args, **kwargs):
        try:
            return api_func(request, *args, **kwargs)
        except SchoolManagementException as exc:
            payload, status = exception_payload(exc)
            return JsonResponse(payload, status=status)
        except Http404:
            return JsonResponse({
                'error': 'Resource not found',
                'message': f"Nothing found at {request.path}",
                'code': 'not_found',
            }, status=404)
        except Exception:
            logger.exception(f"Unexpected failure in {api_func.__name__}")
            return JsonResponse({
                'error': 'Internal server error',
                'message': 'An unexpected error occurred.',
                'code': 'internal_error',
            }, status=500)

    return wrapper


def safe_database_operation(func):
    """
    Run ``func`` in one transaction.

    Domain exceptions pass through after the rollback; driver-level
    ``DatabaseError`` is re-raised as ``DatabaseOperationException``.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            with transaction.atomic():
                return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception(f"{func.__name__} rolled back")
            raise DatabaseOperationException(
                f"Database operation failed: {exc}",
                details={'function': func.__name__},
            ) from exc

    return wrapper
