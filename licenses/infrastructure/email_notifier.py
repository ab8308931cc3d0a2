"""
Email implementation of LicenseNotifier port.

Renders plain-text Django templates and sends them with the configured
email backend.
"""
import logging

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

from licenses.ports.notifier import (
    LicenseAssignmentMessage,
    LicenseExpiryMessage,
    LicenseNotifier,
)

logger = logging.getLogger(__name__)


class EmailLicenseNotifier(LicenseNotifier):
    """Sends license emails through ``django.core.mail``."""

    assignment_template = "licenses/email/license_assignment.txt"
    expiry_template = "licenses/email/license_expiry.txt"

    def _common_context(self):
        options = getattr(settings, "LICENSES", {})
        return {
            "support_email": options.get("SUPPORT_EMAIL") or settings.DEFAULT_FROM_EMAIL,
            "company_name": options.get("COMPANY_NAME", ""),
        }

    def _send(self, subject: str, template: str, context: dict, recipient: str) -> None:
        body = render_to_string(template, context)
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            fail_silently=False,
        )

    async def send_license_assignment(self, message: LicenseAssignmentMessage) -> None:
        """
        Email license credentials to the holder.

        Args:
            message: Assignment message
        """
        context = self._common_context()
        context.update(
            {
                "recipient_name": message.recipient_name,
                "license_key": message.license_key,
                "access_password": message.access_password,
                "license_type_name": message.license_type_name,
                "brand_names": message.brand_names,
                "expires_at": message.expires_at,
                "download_urls": message.download_urls,
            }
        )
        await sync_to_async(self._send)(
            "License Assignment - Access Your New License",
            self.assignment_template,
            context,
            message.recipient_email,
        )
        logger.info("License assignment email sent to %s", message.recipient_email)

    async def send_expiry_notice(self, message: LicenseExpiryMessage) -> None:
        """
        Email an expiry reminder to the holder.

        Args:
            message: Expiry message
        """
        context = self._common_context()
        context.update(
            {
                "recipient_name": message.recipient_name,
                "license_key": message.license_key,
                "license_type_name": message.license_type_name,
                "expires_at": message.expires_at,
                "days_remaining": message.days_remaining,
            }
        )
        await sync_to_async(self._send)(
            f"License Expiry Notice - {message.days_remaining} days remaining",
            self.expiry_template,
            context,
            message.recipient_email,
        )
        logger.info("License expiry notice sent to %s", message.recipient_email)
