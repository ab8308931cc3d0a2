"""
License lifecycle handlers.

Handlers for activate, deactivate, suspend and revoke license commands.
"""
import logging

from core.domain.events import utcnow
from core.domain.exceptions import ConflictError, LicenseNotFoundError
from core.infrastructure.events import event_bus
from core.metrics import license_status_changes_total
from licenses.application.commands.change_license_status import ChangeLicenseStatusCommand
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.events import LicenseStatusChanged
from licenses.domain.services import LicenseLifecycleManager
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

# Attempts at a status write before giving up on a license that keeps changing.
MAX_STATUS_WRITE_ATTEMPTS = 3


class _LicenseTransitionHandler:
    """Load, transition, persist, publish."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    def transition(self, license, now):
        raise NotImplementedError

    async def _apply(self, command: ChangeLicenseStatusCommand, now):
        """
        Compute the transition on a fresh read and write it conditionally.

        A write that finds the status changed since the read is retried
        on a new read, so the transition is always checked against the
        stored state.
        """
        for _ in range(MAX_STATUS_WRITE_ATTEMPTS):
            license = await self.license_repository.find_by_id(command.license_id)
            if not license:
                raise LicenseNotFoundError(f"License {command.license_id} not found")

            changed = self.transition(license, now)
            saved = await self.license_repository.save_status(changed, license.status)
            if saved is not None:
                return license, saved
            logger.info(
                "License %s changed while being updated, retrying",
                license.license_key,
                extra={"license_id": str(license.id)},
            )
        raise ConflictError(
            f"License {command.license_id} changed concurrently, try again",
            code="CONCURRENT_MODIFICATION",
        )

    async def handle(self, command: ChangeLicenseStatusCommand) -> LicenseDTO:
        """
        Handle a status change command.

        Args:
            command: ChangeLicenseStatusCommand

        Returns:
            LicenseDTO after the transition

        Raises:
            LicenseNotFoundError: If license not found
            AlreadyInStateError: If the license is already in the target status
            InvalidTransitionError: If the license is revoked
            ConflictError: If the status kept changing under the write
        """
        now = utcnow()
        license, saved = await self._apply(command, now)

        license_status_changes_total.labels(status=saved.status.value).inc()
        logger.info(
            "License %s changed from %s to %s",
            saved.license_key,
            license.status.value,
            saved.status.value,
            extra={"license_id": str(saved.id), "reason": command.reason},
        )
        await event_bus.publish(
            LicenseStatusChanged(
                license_id=saved.id,
                old_status=license.status.value,
                new_status=saved.status.value,
            )
        )
        return LicenseDTO.from_entity(saved, now)


class ActivateLicenseHandler(_LicenseTransitionHandler):
    """Handler for activating a license."""

    def transition(self, license, now):
        return LicenseLifecycleManager.activate(license, now)


class DeactivateLicenseHandler(_LicenseTransitionHandler):
    """Handler for deactivating a license."""

    def transition(self, license, now):
        return LicenseLifecycleManager.deactivate(license, now)


class SuspendLicenseHandler(_LicenseTransitionHandler):
    """Handler for suspending a license."""

    def transition(self, license, now):
        return LicenseLifecycleManager.suspend(license, now)


class RevokeLicenseHandler(_LicenseTransitionHandler):
    """Handler for revoking a license."""

    def transition(self, license, now):
        return LicenseLifecycleManager.revoke(license, now)
