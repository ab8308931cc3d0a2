"""
LicenseType domain entity.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from core.domain.events import utcnow
from core.domain.value_objects import LicenseTypeStatus


@dataclass(frozen=True)
class LicenseType:
    """
    License type (plan) domain entity.

    ``validity_days`` and ``max_devices`` of ``None`` mean the plan sets
    no expiry and no device ceiling.
    """

    id: uuid.UUID
    name: str
    code: str
    status: LicenseTypeStatus
    validity_days: Optional[int] = None
    max_devices: Optional[int] = None
    max_users: Optional[int] = None
    supported_platforms: List[str] = field(default_factory=list)
    download_url: Optional[str] = None
    price: Optional[Decimal] = None
    currency: str = "USD"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.validity_days is not None and self.validity_days < 1:
            raise ValueError("Validity days must be positive")
        if self.max_devices is not None and self.max_devices < 0:
            raise ValueError("Max devices cannot be negative")

    @classmethod
    def create(
        cls,
        name: str,
        code: str,
        validity_days: Optional[int] = None,
        max_devices: Optional[int] = None,
        status: LicenseTypeStatus = LicenseTypeStatus.ACTIVE,
        license_type_id: Optional[uuid.UUID] = None,
        **extra,
    ) -> "LicenseType":
        """
        Create a new LicenseType entity.

        Args:
            name: Plan display name
            code: Short machine-readable code
            validity_days: Days a license stays valid after issuance
            max_devices: Device ceiling copied onto issued licenses
            status: Catalog status
            license_type_id: Optional UUID (generated if not provided)

        Returns:
            LicenseType entity instance
        """
        now = utcnow()
        return cls(
            id=license_type_id or uuid.uuid4(),
            name=name,
            code=code,
            status=status,
            validity_days=validity_days,
            max_devices=max_devices,
            created_at=now,
            updated_at=now,
            **extra,
        )

    @property
    def is_active(self) -> bool:
        return self.status == LicenseTypeStatus.ACTIVE

    @property
    def has_expiry(self) -> bool:
        """Check if licenses of this type expire on their own."""
        return self.validity_days is not None

    def download_links(self, fallback_url: Optional[str] = None) -> List[Tuple[str, str]]:
        """
        One ``(platform, url)`` pair per supported platform.

        Every platform shares the plan's download URL, or ``fallback_url``
        when the plan has none. Without any URL there is nothing to link.
        """
        url = self.download_url or fallback_url
        if not url:
            return []
        return [(platform, url) for platform in self.supported_platforms]
