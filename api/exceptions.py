"""
API exception handlers.

This module provides custom exception handling for REST API responses.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    ConfigurationError,
    ConflictError,
    DomainException,
    InactiveResourceError,
    LicenseStateError,
    NotFoundError,
    ValidationError,
)
from core.metrics import errors_total

logger = logging.getLogger(__name__)

DOMAIN_STATUS_CODES = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (LicenseStateError, status.HTTP_409_CONFLICT),
    (InactiveResourceError, status.HTTP_400_BAD_REQUEST),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def error_body(code: str, message: str, **extra) -> Dict[str, Any]:
    """Error envelope shared by every API error response."""
    body = {"code": code, "message": message}
    body.update(extra)
    return {"error": body}


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, context, trace_id)
    elif isinstance(exc, DRFValidationError):
        response = Response(
            error_body("VALIDATION_ERROR", "Invalid request", details=exc.detail),
            status=status.HTTP_400_BAD_REQUEST,
        )
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        code = exc.default_code.upper().replace("-", "_")
        response.data = error_body(code, str(response.data.get("detail", exc.default_detail)))
    elif isinstance(exc, Http404):
        response = Response(
            error_body("NOT_FOUND", "Resource not found"),
            status=status.HTTP_404_NOT_FOUND,
        )
    else:
        response = _handle_unexpected_exception(exc, context, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _endpoint(context: Dict[str, Any]) -> str:
    view = context.get("view")
    return view.__class__.__name__ if view else "unknown"


def _handle_domain_exception(
    exc: DomainException, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle domain-specific exceptions."""
    status_code = status.HTTP_400_BAD_REQUEST
    for exception_class, mapped_status in DOMAIN_STATUS_CODES:
        if isinstance(exc, exception_class):
            status_code = mapped_status
            break

    errors_total.labels(error_type=exc.code, endpoint=_endpoint(context)).inc()
    if status_code >= 500:
        logger.error("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    else:
        logger.warning("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})

    extra = {}
    if isinstance(exc, InactiveResourceError) and exc.resource_names:
        extra["resources"] = exc.resource_names
    return Response(error_body(exc.code, exc.message, **extra), status=status_code)


def _handle_unexpected_exception(
    exc: Exception, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle unexpected or untracked exceptions."""
    errors_total.labels(error_type=type(exc).__name__, endpoint=_endpoint(context)).inc()
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    return Response(
        error_body("INTERNAL_ERROR", "An internal error occurred"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
