"""
UpdateLicenseHandler, UpdateLicenseBrandHandler and DeleteLicenseHandler.
"""
import logging

from core.domain.events import utcnow
from core.domain.exceptions import LicenseNotFoundError, NotFoundError, ValidationError
from core.domain.value_objects import LicenseBrandStatus
from core.infrastructure.events import event_bus
from licenses.application.commands.delete_license import DeleteLicenseCommand
from licenses.application.commands.update_license import (
    UpdateLicenseBrandCommand,
    UpdateLicenseCommand,
)
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.events import LicenseDeleted, LicenseUpdated
from licenses.domain.license import MAX_DEVICES_LIMIT
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class UpdateLicenseHandler:
    """
    Handler for UpdateLicenseCommand.

    Status is deliberately not updatable here; use the lifecycle handlers.
    """

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    @staticmethod
    def _validate(changes):
        max_access_count = changes.get("max_access_count")
        if max_access_count is not None and max_access_count < 0:
            raise ValidationError("max_access_count cannot be negative")
        max_devices = changes.get("max_devices")
        if max_devices is not None and not 0 <= max_devices <= MAX_DEVICES_LIMIT:
            raise ValidationError(f"max_devices must be between 0 and {MAX_DEVICES_LIMIT}")
        for name in ("max_access_count", "max_devices"):
            if name in changes and changes[name] is None:
                raise ValidationError(f"{name} cannot be null")

    async def handle(self, command: UpdateLicenseCommand) -> LicenseDTO:
        """
        Handle update license command.

        Args:
            command: UpdateLicenseCommand

        Returns:
            Updated LicenseDTO

        Raises:
            LicenseNotFoundError: If license not found
            ValidationError: If a limit is out of range
        """
        changes = command.changes()
        self._validate(changes)

        if not changes:
            license = await self.license_repository.find_by_id(command.license_id)
        else:
            license = await self.license_repository.update_fields(command.license_id, **changes)
        if not license:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        if changes:
            logger.info(
                "License %s updated",
                license.license_key,
                extra={"license_id": str(license.id), "fields": sorted(changes)},
            )
            await event_bus.publish(
                LicenseUpdated(license_id=license.id, changed_fields=sorted(changes))
            )
        return LicenseDTO.from_entity(license)


class UpdateLicenseBrandHandler:
    """Handler for UpdateLicenseBrandCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, command: UpdateLicenseBrandCommand) -> LicenseDTO:
        """
        Handle update license brand command.

        Args:
            command: UpdateLicenseBrandCommand

        Returns:
            Parent LicenseDTO with the updated grant

        Raises:
            NotFoundError: If the license has no grant for the brand
            ValidationError: If the status is unknown
        """
        changes = command.changes()
        if "status" in changes:
            try:
                changes["status"] = LicenseBrandStatus(changes["status"])
            except ValueError as exc:
                raise ValidationError(f"Unknown license brand status: {changes['status']}") from exc

        license = await self.license_repository.find_by_id(command.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {command.license_id} not found")
        if not license.get_brand(command.brand_id):
            raise NotFoundError(
                f"License {command.license_id} has no access to brand {command.brand_id}",
                code="LICENSE_BRAND_NOT_FOUND",
            )
        if not changes:
            return LicenseDTO.from_entity(license)

        license = await self.license_repository.update_license_brand(
            command.license_id, command.brand_id, **changes
        )
        if not license:
            raise NotFoundError(
                f"License {command.license_id} has no access to brand {command.brand_id}",
                code="LICENSE_BRAND_NOT_FOUND",
            )
        await event_bus.publish(
            LicenseUpdated(
                license_id=license.id,
                changed_fields=sorted(changes),
                brand_id=command.brand_id,
            )
        )
        return LicenseDTO.from_entity(license)


class DeleteLicenseHandler:
    """Handler for DeleteLicenseCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, command: DeleteLicenseCommand) -> None:
        """
        Soft-delete a license and its brand grants.

        Raises:
            LicenseNotFoundError: If license not found
        """
        deleted = await self.license_repository.soft_delete(command.license_id, utcnow())
        if not deleted:
            raise LicenseNotFoundError(f"License {command.license_id} not found")
        logger.info("License %s deleted", command.license_id)
        await event_bus.publish(LicenseDeleted(license_id=command.license_id))
