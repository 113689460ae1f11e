# core/api/exception_handlers.py
import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import SchoolManagementException
from core.utils.error_handling import exception_payload

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Render domain exceptions with the same JSON shape as
    ``handle_api_exception``; everything else goes through DRF.
    """
    if isinstance(exc, SchoolManagementException):
        payload, status = exception_payload(exc)
        return Response(payload, status=status)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get('view')
        logger.error(
            f"Unhandled API error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
            exc_info=True
        )
    return response
