"""
Celery tasks for background processing.

Tasks for license expiry reminders.
"""
import logging
from dataclasses import asdict
from typing import Optional

from asgiref.sync import async_to_sync

from LicenseAdminService.celery import app
from licenses.application.commands.notify_expiring_licenses import (
    NotifyExpiringLicensesCommand,
)
from licenses.application.handlers.notify_expiring_licenses_handler import (
    NotifyExpiringLicensesHandler,
)
from licenses.infrastructure.email_notifier import EmailLicenseNotifier
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)

logger = logging.getLogger(__name__)


@app.task
def send_expiry_notifications_task(within_days: Optional[int] = None) -> dict:
    """
    Celery task sending expiry reminders.

    Args:
        within_days: Look-ahead window (defaults to ``LICENSES["EXPIRY_NOTICE_DAYS"]``)

    Returns:
        Checked, sent and failed counts
    """
    handler = NotifyExpiringLicensesHandler(
        license_repository=DjangoLicenseRepository(),
        notifier=EmailLicenseNotifier(),
    )
    result = async_to_sync(handler.handle)(
        NotifyExpiringLicensesCommand(within_days=within_days)
    )
    return asdict(result)
