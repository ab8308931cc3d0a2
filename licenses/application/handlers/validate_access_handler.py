"""
ValidateAccessHandler.

Decides an access attempt and, when granted, records it atomically.
"""
import logging

from core.domain.events import utcnow
from core.infrastructure.events import event_bus
from core.metrics import license_validations_total
from licenses.application.commands.validate_access import ValidateAccessCommand
from licenses.application.dto.license_dto import AccessValidationResult, LicenseDTO
from licenses.domain.events import LicenseAccessed
from licenses.domain.license import require_device_id
from licenses.domain.services import AccessDenialReason, AccessPolicy
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

DENIAL_MESSAGES = {
    AccessDenialReason.INVALID_KEY: "Invalid license key",
    AccessDenialReason.ACCESS_NOT_ALLOWED: "License access not allowed",
    AccessDenialReason.INVALID_PASSWORD: "Invalid password",
    AccessDenialReason.DEVICE_LIMIT_EXCEEDED: "Device limit exceeded",
}


class ValidateAccessHandler:
    """Handler for ValidateAccessCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    def _deny(self, reason: AccessDenialReason, license_key: str) -> AccessValidationResult:
        license_validations_total.labels(result=reason.value).inc()
        logger.info(
            "License access denied: %s",
            reason.value,
            extra={"license_key": license_key, "reason": reason.value},
        )
        return AccessValidationResult(
            valid=False, reason=reason.value, message=DENIAL_MESSAGES[reason]
        )

    async def handle(self, command: ValidateAccessCommand) -> AccessValidationResult:
        """
        Handle validate access command.

        The attempt is checked in order (key, license state and access
        ceiling, password, device ceiling); the first failure decides the
        denial reason. A granted attempt increments ``access_count`` and
        registers the device. The license status is never changed.

        Args:
            command: ValidateAccessCommand

        Returns:
            AccessValidationResult

        Raises:
            ValidationError: If the fingerprint lacks a device id
        """
        device_id = require_device_id(command.device_fingerprint)
        license_key = (command.license_key or "").strip()
        now = utcnow()

        license = await self.license_repository.find_by_key(license_key) if license_key else None
        reason = AccessPolicy.evaluate(license, command.access_password, command.device_fingerprint, now)
        if reason is not None:
            return self._deny(reason, license_key)

        updated, reason = await self.license_repository.record_access(
            license.id, command.device_fingerprint, now
        )
        if reason is not None:
            return self._deny(reason, license_key)

        license_validations_total.labels(result="granted").inc()
        await event_bus.publish(
            LicenseAccessed(
                license_id=updated.id,
                access_count=updated.access_count,
                device_id=device_id,
            )
        )
        return AccessValidationResult(valid=True, license=LicenseDTO.from_entity(updated, now))
