"""
Prometheus metrics for the license service.

Custom metrics for business logic and performance monitoring.
"""

from prometheus_client import Counter, Histogram

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# License metrics
licenses_issued_total = Counter(
    "licenses_issued_total",
    "Total licenses issued",
    ["license_type"],
)

license_validations_total = Counter(
    "license_validations_total",
    "Total access validation attempts",
    ["result"],
)

license_status_changes_total = Counter(
    "license_status_changes_total",
    "Total license status transitions",
    ["status"],
)

license_notifications_total = Counter(
    "license_notifications_total",
    "Total license notifications attempted",
    ["kind", "result"],
)

# Error metrics
errors_total = Counter(
    "errors_total",
    "Total errors",
    ["error_type", "endpoint"],
)
