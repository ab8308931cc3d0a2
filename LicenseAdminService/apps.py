"""
App configuration for License Administration Service.
"""

import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class LicenseAdminServiceConfig(AppConfig):
    """App configuration for LicenseAdminService."""

    name = "LicenseAdminService"
    verbose_name = "License Administration Service"

    def ready(self):
        """Register event handlers and, when enabled, tracing."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()

        if getattr(settings, "OTEL_ENABLED", False):
            from core.instrumentation import setup_opentelemetry

            setup_opentelemetry()
