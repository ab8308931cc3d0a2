"""
Django implementation of LicenseTypeRepository port.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import LicenseTypeStatus
from license_types.domain.license_type import LicenseType
from license_types.infrastructure.models import LicenseType as LicenseTypeModel
from license_types.ports.license_type_repository import LicenseTypeRepository


class DjangoLicenseTypeRepository(LicenseTypeRepository):
    """Django ORM implementation of LicenseTypeRepository."""

    def _to_domain(self, model: LicenseTypeModel) -> LicenseType:
        return LicenseType(
            id=model.id,
            name=model.name,
            code=model.code,
            status=LicenseTypeStatus(model.status),
            validity_days=model.validity_days,
            max_devices=model.max_devices,
            max_users=model.max_users,
            supported_platforms=list(model.supported_platforms or []),
            download_url=model.download_url,
            price=model.price,
            currency=model.currency,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    def save(self, license_type: LicenseType) -> LicenseType:
        """
        Save a license type entity.

        Args:
            license_type: LicenseType entity to save

        Returns:
            Saved license type entity
        """
        # pylint: disable=no-member
        model, _ = LicenseTypeModel.objects.update_or_create(
            id=license_type.id,
            defaults={
                "name": license_type.name,
                "code": license_type.code,
                "status": license_type.status.value,
                "validity_days": license_type.validity_days,
                "max_devices": license_type.max_devices,
                "max_users": license_type.max_users,
                "supported_platforms": list(license_type.supported_platforms),
                "download_url": license_type.download_url,
                "price": license_type.price,
                "currency": license_type.currency,
            },
        )
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, license_type_id: uuid.UUID) -> Optional[LicenseType]:
        """
        Find a license type by ID.

        Args:
            license_type_id: LicenseType UUID

        Returns:
            LicenseType entity or None if not found
        """
        # pylint: disable=no-member
        model = LicenseTypeModel.objects.alive().filter(id=license_type_id).first()
        return self._to_domain(model) if model else None
