"""
Django management command to email holders of licenses expiring soon.

This command should be run periodically (e.g., via cron or scheduled task).
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

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


class Command(BaseCommand):
    """Command to send license expiry reminders."""

    help = "Email holders of active licenses that expire soon"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Look-ahead window in days (defaults to LICENSES['EXPIRY_NOTICE_DAYS'])",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = NotifyExpiringLicensesHandler(
            license_repository=DjangoLicenseRepository(),
            notifier=EmailLicenseNotifier(),
        )
        result = async_to_sync(handler.handle)(
            NotifyExpiringLicensesCommand(within_days=options["days"])
        )

        self.stdout.write(f"Checked {result.checked} expiring license(s)")
        if result.failed:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING(f"Failed to notify {result.failed} holder(s)"))
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Sent {result.sent} expiry notice(s)"))
