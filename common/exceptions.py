"""Domain exceptions and the project-wide DRF exception handler.

Every error response is wrapped in one envelope::

    {"success": false, "code": "NOT_FOUND", "error": "Warehouse not found.", "details": ...}

``code`` is machine-oriented, ``error`` is a short human-readable message,
``details`` carries field errors for validation failures.
"""

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("sellerportal.errors")


class ValidationFailed(APIException):
    """Malformed input rejected before any write."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation error."
    default_code = "VALIDATION_ERROR"


class NotFoundOrAccessDenied(APIException):
    """Record missing or not owned by the caller's effective seller."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found or access denied."
    default_code = "NOT_FOUND"


class InsufficientStock(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Insufficient stock for this operation."
    default_code = "INSUFFICIENT_STOCK"


class WarehouseInUse(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Warehouse has ledger history and cannot be deleted."
    default_code = "WAREHOUSE_IN_USE"


class InternalError(APIException):
    """Store failure that survived the retry policy."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error."
    default_code = "INTERNAL_ERROR"


class ImmutableRecord(Exception):
    """Attempt to update or delete an insert-only record."""


_CODES_BY_CLASS = {
    exceptions.ValidationError: "VALIDATION_ERROR",
    exceptions.ParseError: "VALIDATION_ERROR",
    exceptions.NotFound: "NOT_FOUND",
    exceptions.PermissionDenied: "PERMISSION_DENIED",
    exceptions.NotAuthenticated: "NOT_AUTHENTICATED",
    exceptions.AuthenticationFailed: "AUTHENTICATION_FAILED",
    exceptions.Throttled: "THROTTLED",
    exceptions.MethodNotAllowed: "METHOD_NOT_ALLOWED",
}


def _code_for(exc) -> str:
    for klass, code in _CODES_BY_CLASS.items():
        if isinstance(exc, klass):
            return code
    return str(getattr(exc, "default_code", "ERROR")).upper()


def api_exception_handler(exc, context):
    """Wrap DRF error responses in the standard envelope.

    Unhandled exceptions are logged and rendered as a generic 500 so no
    internals leak to the caller.
    """
    if isinstance(exc, Http404):
        exc = NotFoundOrAccessDenied()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "api.unhandled_exception",
            exc_info=exc,
            extra={"event": "api.unhandled_exception", "view": type(view).__name__ if view else None},
        )
        return Response(
            {"success": False, "code": "INTERNAL_ERROR", "error": InternalError.default_detail},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = _code_for(exc)
    data = response.data
    if isinstance(data, dict) and set(data.keys()) == {"detail"}:
        detail = data["detail"]
        if isinstance(detail, list):
            detail = " ".join(str(item) for item in detail)
        payload = {"success": False, "code": code, "error": str(detail)}
    else:
        payload = {"success": False, "code": code, "error": "Validation error.", "details": data}
        if code != "VALIDATION_ERROR":
            payload["error"] = str(getattr(exc, "default_detail", "Request failed."))
    response.data = payload
    return response
