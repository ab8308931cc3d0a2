"""
Event handlers for domain events.

These handlers process domain events asynchronously for side effects
like audit logging.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import (
    LicenseAccessed,
    LicenseDeleted,
    LicenseIssued,
    LicenseStatusChanged,
    LicenseUpdated,
)

logger = logging.getLogger(__name__)

LICENSE_EVENTS = (
    LicenseIssued,
    LicenseAccessed,
    LicenseStatusChanged,
    LicenseUpdated,
    LicenseDeleted,
)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every domain event to the ``audit`` logger as structured data.
    """

    audit_logger = logging.getLogger("audit")

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        self.audit_logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={"event": event.to_dict()},
        )


def register_event_handlers(bus=None):
    """Register all event handlers with the event bus."""
    from core.infrastructure.events import event_bus

    bus = bus or event_bus
    audit_handler = AuditLogEventHandler()
    for event_type in LICENSE_EVENTS:
        bus.subscribe(event_type, audit_handler)

    logger.info("Event handlers registered")
