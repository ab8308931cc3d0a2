"""
NotifyExpiringLicensesHandler.

Sends expiry reminders for active licenses expiring soon.
"""
import logging

from django.conf import settings

from core.domain.events import utcnow
from core.metrics import license_notifications_total
from licenses.application.commands.notify_expiring_licenses import (
    NotifyExpiringLicensesCommand,
)
from licenses.application.dto.license_dto import NotificationRunResult
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import LicenseExpiryMessage, LicenseNotifier

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_NOTICE_DAYS = 7


class NotifyExpiringLicensesHandler:
    """Handler for NotifyExpiringLicensesCommand."""

    def __init__(self, license_repository: LicenseRepository, notifier: LicenseNotifier):
        """Initialize handler with repository and notifier."""
        self.license_repository = license_repository
        self.notifier = notifier

    async def handle(self, command: NotifyExpiringLicensesCommand) -> NotificationRunResult:
        """
        Handle notify expiring licenses command.

        A failure to notify one holder is logged and counted; the run
        continues with the next license.

        Args:
            command: NotifyExpiringLicensesCommand

        Returns:
            NotificationRunResult with checked, sent and failed counts
        """
        within_days = command.within_days
        if within_days is None:
            within_days = getattr(settings, "LICENSES", {}).get(
                "EXPIRY_NOTICE_DAYS", DEFAULT_EXPIRY_NOTICE_DAYS
            )
        now = utcnow()
        licenses = await self.license_repository.find_expiring(within_days, now)
        result = NotificationRunResult(checked=len(licenses))

        for license in licenses:
            message = LicenseExpiryMessage(
                recipient_email=license.user_email,
                recipient_name=license.user_name or license.user_email,
                license_key=license.license_key,
                license_type_name=license.license_type_name or "",
                expires_at=license.expires_at,
                days_remaining=license.days_until_expiry(now),
            )
            try:
                await self.notifier.send_expiry_notice(message)
            except Exception:  # pylint: disable=broad-exception-caught
                result.failed += 1
                license_notifications_total.labels(kind="expiry", result="failure").inc()
                logger.warning(
                    "Failed to send expiry notice for %s",
                    license.license_key,
                    exc_info=True,
                    extra={"license_id": str(license.id)},
                )
            else:
                result.sent += 1
                license_notifications_total.labels(kind="expiry", result="success").inc()

        logger.info(
            "Expiry notices: %d checked, %d sent, %d failed",
            result.checked,
            result.sent,
            result.failed,
            extra={"within_days": within_days},
        )
        return result
