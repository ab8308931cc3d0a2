"""
Observability middleware.

This middleware adds structured request logs, HTTP metrics and
correlation headers, linked to the active OpenTelemetry span.
"""

import logging
import time
import uuid
from typing import Callable

from django.http import HttpRequest, HttpResponse
from opentelemetry import trace
from opentelemetry.trace import format_span_id, format_trace_id

from core.metrics import http_request_duration_seconds, http_requests_total

logger = logging.getLogger(__name__)


class ObservabilityMiddleware:
    """
    Middleware for request observability.

    This middleware:
    1. Generates correlation IDs for request tracing
    2. Logs request/response information
    3. Records request count and duration metrics
    4. Adds correlation and trace IDs to response headers
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request and add observability.

        Args:
            request: HTTP request

        Returns:
            HTTP response with observability headers
        """
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.correlation_id = correlation_id  # type: ignore

        trace_id, span_id = self._trace_context()
        start_time = time.monotonic()
        log_extra = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.path,
            "remote_addr": request.META.get("REMOTE_ADDR"),
        }
        if trace_id:
            log_extra["trace_id"] = trace_id
            log_extra["span_id"] = span_id
        logger.debug("Request started", extra=log_extra)

        try:
            response = self.get_response(request)
        except Exception as e:
            self._log_exception(request, e, start_time, correlation_id)
            raise

        duration = time.monotonic() - start_time
        endpoint = self._endpoint(request)
        http_requests_total.labels(
            method=request.method, endpoint=endpoint, status_code=response.status_code
        ).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(
            duration
        )
        self._log_response(request, response, duration, log_extra)

        response["X-Correlation-ID"] = correlation_id
        response["X-Request-Duration"] = f"{duration:.3f}"
        if trace_id:
            response["X-Trace-ID"] = trace_id
        return response

    @staticmethod
    def _trace_context():
        span_context = trace.get_current_span().get_span_context()
        if not span_context.is_valid:
            return None, None
        return format_trace_id(span_context.trace_id), format_span_id(span_context.span_id)

    @staticmethod
    def _endpoint(request: HttpRequest) -> str:
        """Route pattern rather than raw path, to keep label cardinality bounded."""
        match = getattr(request, "resolver_match", None)
        if match is not None and match.route:
            return match.route
        return "unmatched"

    def _log_response(self, request, response, duration, log_extra):
        """Log structured response information."""
        log_extra = dict(log_extra)
        log_extra.update(
            {
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )
        principal = getattr(request, "principal", None)
        if principal is not None:
            log_extra["principal_id"] = str(principal.id)
            log_extra["principal_role"] = principal.role.value

        if response.status_code >= 500:
            logger.error("Request completed with server error", extra=log_extra)
        elif response.status_code >= 400:
            logger.warning("Request completed with client error", extra=log_extra)
        else:
            logger.info("Request completed successfully", extra=log_extra)

    def _log_exception(self, request, e, start_time, correlation_id):
        """Log an exception that escaped the view stack."""
        logger.error(
            "Request failed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "path": request.path,
                "error_type": type(e).__name__,
                "duration_ms": round((time.monotonic() - start_time) * 1000, 2),
            },
            exc_info=True,
        )
