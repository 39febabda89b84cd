"""
Standardized API response envelope.

Every response leaving the API has the shape:
{
    "status": "success" | "error",
    "message": "string message or empty",
    "data": {...} | [] | null
}

Workflow errors raised by the procurement services are translated here:
Unauthorized -> 403, NotFound -> 404, InvalidState -> 409,
ValidationError -> 400.
"""
import logging

from django.core.exceptions import (
    ObjectDoesNotExist,
    PermissionDenied,
    ValidationError as DjangoValidationError,
)
from rest_framework import status as http_status
from rest_framework.renderers import JSONRenderer
from rest_framework.response import Response
from rest_framework.views import exception_handler

from procurement.exceptions import InvalidState, describe_error

logger = logging.getLogger(__name__)


def workflow_status_code(exc):
    """Map a workflow exception onto its HTTP status code."""
    if isinstance(exc, PermissionDenied):
        return http_status.HTTP_403_FORBIDDEN
    if isinstance(exc, ObjectDoesNotExist):
        return http_status.HTTP_404_NOT_FOUND
    if isinstance(exc, InvalidState):
        return http_status.HTTP_409_CONFLICT
    return http_status.HTTP_400_BAD_REQUEST


def custom_exception_handler(exc, context):
    """
    Format every error response with the standard envelope.

    DRF already knows about PermissionDenied and Http404; Django's
    ValidationError and the NotFound/InvalidState workflow errors are
    handled here so that an uncaught service error still gets a proper
    status code.
    """
    response = exception_handler(exc, context)

    if response is not None:
        response.data = format_error_response(response.data, response.status_code)
        return response

    if isinstance(exc, (DjangoValidationError, ObjectDoesNotExist)):
        status_code = workflow_status_code(exc)
        logger.warning(f"Unhandled workflow error in {context.get('view')}: {exc!r}")
        return error_response(
            message=describe_error(exc),
            data={'detail': describe_error(exc)},
            status_code=status_code
        )

    return None


def format_error_response(errors, status_code):
    """
    Flatten DRF error payloads into the standard error envelope.

    - {"field": ["error1", "error2"]} -> "field: error1, error2"
    - {"detail": "message"}           -> "message"
    - ["error1", "error2"]            -> "error1, error2"
    """
    if isinstance(errors, dict):
        message = str(errors.get('detail', ''))
        field_messages = [
            f"{field}: {_flatten(field_errors)}"
            for field, field_errors in errors.items()
            if field != 'detail'
        ]
        if field_messages:
            message = "; ".join(field_messages)
    elif isinstance(errors, list):
        message = ", ".join(str(e) for e in errors)
    else:
        message = str(errors)

    return {
        "status": "error",
        "message": message,
        "data": None
    }


def _flatten(value):
    if isinstance(value, list):
        return ", ".join(_flatten(v) for v in value)
    if isinstance(value, dict):
        return "; ".join(f"{k}: {_flatten(v)}" for k, v in value.items())
    return str(value)


class StandardizedJSONRenderer(JSONRenderer):
    """
    JSON renderer that wraps responses which are not yet in the
    standard envelope.
    """

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context.get('response') if renderer_context else None
        if response is not None and response.status_code == 204:
            return b''
        if response is not None and not self.is_already_formatted(data):
            if response.status_code >= 400:
                data = format_error_response(data, response.status_code)
            else:
                data = self.format_success_response(data)

        return super().render(data, accepted_media_type, renderer_context)

    def is_already_formatted(self, data):
        return isinstance(data, dict) and {'status', 'message', 'data'} <= set(data)

    def format_success_response(self, data):
        if isinstance(data, dict) and 'detail' in data:
            return {"status": "success", "message": str(data['detail']), "data": None}
        if data is None or (isinstance(data, dict) and not data):
            return {"status": "success", "message": "", "data": None}
        return {"status": "success", "message": "", "data": data}


def success_response(data=None, message="", status_code=http_status.HTTP_200_OK):
    """
    Build a standardized success response.

    Usage:
        from procure_project.response_formatter import success_response

        return success_response(
            data=serializer.data,
            message="Purchase order created successfully",
            status_code=status.HTTP_201_CREATED
        )
    """
    return Response({
        "status": "success",
        "message": message,
        "data": data
    }, status=status_code)


def error_response(message, data=None, status_code=http_status.HTTP_400_BAD_REQUEST):
    """
    Build a standardized error response.

    Usage:
        from procure_project.response_formatter import error_response

        return error_response(
            message="Purchase order not found",
            status_code=status.HTTP_404_NOT_FOUND
        )
    """
    return Response({
        "status": "error",
        "message": message,
        "data": data
    }, status=status_code)


def workflow_error_response(exc, message):
    """
    Translate a procurement workflow exception into an error response.

    Usage:
        try:
            po = PurchaseOrderService.approve_direct_po(request.user, dto)
        except WORKFLOW_ERRORS as e:
            return workflow_error_response(e, "Failed to approve purchase order")
    """
    status_code = workflow_status_code(exc)
    logger.warning(f"{message}: {exc!r}")
    return error_response(
        message=message,
        data={'detail': describe_error(exc), 'error': type(exc).__name__},
        status_code=status_code
    )
