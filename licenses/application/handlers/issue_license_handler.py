"""
IssueLicenseHandler and AssignLicenseHandler.

Issuance validates every reference before writing anything, generates
the credentials, inserts the license and its brand grants in one
transaction and only then notifies the holder.
"""
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from brands.ports.brand_repository import BrandRepository
from core.domain.events import utcnow
from core.domain.exceptions import (
    BrandNotFoundError,
    ConflictError,
    InactiveResourceError,
    LicenseTypeNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from core.domain.value_objects import Email, UserStatus
from core.infrastructure.events import event_bus
from core.metrics import license_notifications_total, licenses_issued_total
from license_types.domain.license_type import LicenseType
from license_types.ports.license_type_repository import LicenseTypeRepository
from licenses.application.commands.issue_license import (
    AssignLicenseCommand,
    IssueLicenseCommand,
)
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.credentials import CredentialGenerator, generate_license_key, hash_secret
from licenses.domain.events import LicenseIssued
from licenses.domain.license import License, LicenseBrand
from licenses.ports.license_repository import LicenseRepository
from licenses.ports.notifier import LicenseAssignmentMessage, LicenseNotifier
from users.domain.user import User
from users.ports.user_repository import UserRepository

logger = logging.getLogger(__name__)


def compute_expiry(
    license_type: LicenseType, now: datetime, explicit: Optional[datetime] = None
) -> Optional[datetime]:
    """
    Expiry of a newly issued license.

    An explicit expiry wins; otherwise the license type's validity
    period counts from issuance; otherwise the license never expires.
    """
    if explicit is not None:
        return explicit
    if license_type.validity_days:
        return now + timedelta(days=license_type.validity_days)
    return None


class IssueLicenseHandler:
    """Handler for IssueLicenseCommand."""

    def __init__(
        self,
        user_repository: UserRepository,
        license_type_repository: LicenseTypeRepository,
        brand_repository: BrandRepository,
        license_repository: LicenseRepository,
        notifier: LicenseNotifier,
        default_download_url: Optional[str] = None,
    ):
        """Initialize handler with repositories and the notifier."""
        self.user_repository = user_repository
        self.license_type_repository = license_type_repository
        self.brand_repository = brand_repository
        self.license_repository = license_repository
        self.notifier = notifier
        self.default_download_url = default_download_url

    async def _load_brands(self, brand_ids):
        if not brand_ids:
            raise ValidationError("At least one brand is required")
        duplicates = sorted(str(brand_id) for brand_id, count in Counter(brand_ids).items() if count > 1)
        if duplicates:
            raise ValidationError(f"Duplicate brand ids: {', '.join(duplicates)}")

        found = await self.brand_repository.find_by_ids(brand_ids)
        missing = [str(brand_id) for brand_id in brand_ids if brand_id not in found]
        if missing:
            raise BrandNotFoundError(f"Brands not found: {', '.join(missing)}")

        brands = [found[brand_id] for brand_id in brand_ids]
        inactive = [brand.name for brand in brands if not brand.is_active]
        if inactive:
            raise InactiveResourceError(
                f"Brands are not active: {', '.join(inactive)}", resource_names=inactive
            )
        return brands

    async def handle(self, command: IssueLicenseCommand) -> LicenseDTO:
        """
        Handle issue license command.

        Args:
            command: IssueLicenseCommand

        Returns:
            LicenseDTO of the stored license (without the password)

        Raises:
            UserNotFoundError: If the user does not exist
            LicenseTypeNotFoundError: If the license type does not exist
            InactiveResourceError: If the license type or any brand is inactive
            ConflictError: If the user already holds a license of this type
            BrandNotFoundError: If a brand does not exist
            ValidationError: If brand ids are missing or duplicated
        """
        user = await self.user_repository.find_by_id(command.user_id)
        if not user:
            raise UserNotFoundError(f"User {command.user_id} not found")

        license_type = await self.license_type_repository.find_by_id(command.license_type_id)
        if not license_type:
            raise LicenseTypeNotFoundError(f"License type {command.license_type_id} not found")
        if not license_type.is_active:
            raise InactiveResourceError(
                f"License type '{license_type.name}' is not active",
                resource_names=[license_type.name],
            )

        existing = await self.license_repository.find_by_user_and_type(user.id, license_type.id)
        if existing:
            raise ConflictError(
                f"User {user.email} already has a {license_type.name} license"
            )

        brands = await self._load_brands(list(command.brand_ids))

        now = utcnow()
        plaintext_password = CredentialGenerator.generate_user_friendly()
        expires_at = compute_expiry(license_type, now, command.expires_at)
        assigned_by = command.assigned_by or command.principal_id

        license = License.create(
            license_key=generate_license_key(now=now),
            access_password=hash_secret(plaintext_password),
            user_id=user.id,
            license_type_id=license_type.id,
            now=now,
            expires_at=expires_at,
            max_devices=license_type.max_devices or 0,
            notes=command.notes,
            assigned_by=assigned_by,
            assignment_reason=command.assignment_reason,
        )
        license_brands = [
            LicenseBrand.create(
                license_id=license.id,
                brand_id=brand.id,
                now=now,
                expires_at=expires_at,
                assigned_by=assigned_by,
                brand_name=brand.name,
            )
            for brand in brands
        ]

        saved = await self.license_repository.create_with_brands(license, license_brands)
        licenses_issued_total.labels(license_type=license_type.code).inc()
        logger.info(
            "License %s issued to %s",
            saved.license_key,
            user.email,
            extra={
                "license_id": str(saved.id),
                "user_id": str(user.id),
                "license_type_id": str(license_type.id),
                "brand_count": len(brands),
            },
        )

        await event_bus.publish(
            LicenseIssued(
                license_id=saved.id,
                license_key=saved.license_key,
                user_id=user.id,
                license_type_id=license_type.id,
                brand_ids=tuple(brand.id for brand in brands),
                assigned_by=assigned_by,
            )
        )

        saved = await self._notify(saved, user, license_type, brands, plaintext_password)
        return LicenseDTO.from_entity(saved, now)

    async def _notify(self, license, user: User, license_type, brands, plaintext_password):
        message = LicenseAssignmentMessage(
            recipient_email=str(user.email),
            recipient_name=user.display_name,
            license_key=license.license_key,
            access_password=plaintext_password,
            license_type_name=license_type.name,
            brand_names=[brand.name for brand in brands],
            expires_at=license.expires_at,
            download_urls=license_type.download_links(self.default_download_url),
        )
        try:
            await self.notifier.send_license_assignment(message)
        except Exception:  # pylint: disable=broad-exception-caught
            license_notifications_total.labels(kind="assignment", result="failure").inc()
            logger.warning(
                "Failed to send license email for %s",
                license.license_key,
                exc_info=True,
                extra={"license_id": str(license.id)},
            )
            return license

        sent_at = utcnow()
        await self.license_repository.mark_email_sent(license.id, sent_at)
        license_notifications_total.labels(kind="assignment", result="success").inc()
        return license.with_changes(email_sent=True, email_sent_at=sent_at)


class AssignLicenseHandler:
    """
    Handler for AssignLicenseCommand.

    Resolves the email to a user, creating an active user on first
    assignment, and delegates to IssueLicenseHandler.
    """

    def __init__(self, user_repository: UserRepository, issue_handler: IssueLicenseHandler):
        """Initialize handler with the user repository and issue handler."""
        self.user_repository = user_repository
        self.issue_handler = issue_handler

    async def handle(self, command: AssignLicenseCommand) -> LicenseDTO:
        """
        Handle assign license command.

        Args:
            command: AssignLicenseCommand

        Returns:
            LicenseDTO of the stored license

        Raises:
            ValidationError: If the email is malformed
        """
        try:
            email = Email.normalized(command.email)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        user = await self.user_repository.create_if_absent(str(email), UserStatus.ACTIVE)
        return await self.issue_handler.handle(
            IssueLicenseCommand(
                user_id=user.id,
                license_type_id=command.license_type_id,
                brand_ids=list(command.brand_ids),
                expires_at=command.expires_at,
                notes=command.notes,
                assigned_by=command.assigned_by,
                assignment_reason=command.assignment_reason,
                principal_id=command.principal_id,
            )
        )
