"""
License domain entities.

This is the core domain of the service. A License ties a user to a
license type and to the brands it grants access to. Entities are
immutable; state changes produce new instances via ``with_changes``.
"""

import math
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.domain.events import utcnow
from core.domain.exceptions import ValidationError
from core.domain.value_objects import LicenseBrandStatus, LicenseStatus

MAX_DEVICES_LIMIT = 100

DEVICE_ID_KEY = "deviceId"
DEVICE_ADDED_AT_KEY = "addedAt"


def device_id_of(fingerprint: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the device identifier of a fingerprint blob."""
    if not fingerprint:
        return None
    device_id = fingerprint.get(DEVICE_ID_KEY)
    return str(device_id) if device_id not in (None, "") else None


def require_device_id(fingerprint: Optional[Dict[str, Any]]) -> Optional[str]:
    """
    Validate a client-supplied fingerprint.

    Args:
        fingerprint: Fingerprint blob or None

    Returns:
        Device identifier, or None when no fingerprint was given

    Raises:
        ValidationError: If a fingerprint is given without a device id
    """
    if fingerprint is None:
        return None
    if not isinstance(fingerprint, dict):
        raise ValidationError("Device fingerprint must be an object")
    device_id = device_id_of(fingerprint)
    if device_id is None:
        raise ValidationError(f"Device fingerprint must include '{DEVICE_ID_KEY}'")
    return device_id


def _days_until(expires_at: Optional[datetime], now: datetime) -> Optional[int]:
    if expires_at is None:
        return None
    return math.ceil((expires_at - now) / timedelta(days=1))


@dataclass(frozen=True)
class LicenseBrand:
    """
    Access grant of one license to one brand.

    Its status is independent from the parent license's status.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    brand_id: uuid.UUID
    status: LicenseBrandStatus
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    access_count: int = 0
    last_accessed_at: Optional[datetime] = None
    permissions: Optional[Dict[str, Any]] = None
    restrictions: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    assigned_by: Optional[uuid.UUID] = None
    assigned_at: Optional[datetime] = None
    brand_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        brand_id: uuid.UUID,
        now: datetime,
        expires_at: Optional[datetime] = None,
        assigned_by: Optional[uuid.UUID] = None,
        brand_name: Optional[str] = None,
    ) -> "LicenseBrand":
        """
        Create an active brand grant at issuance time.

        Args:
            license_id: Parent license UUID
            brand_id: Brand UUID
            now: Issuance time, used as activation and assignment time
            expires_at: Expiry mirrored from the parent license
            assigned_by: Administrator who issued the license
            brand_name: Brand display name, for read models

        Returns:
            LicenseBrand entity instance
        """
        return cls(
            id=uuid.uuid4(),
            license_id=license_id,
            brand_id=brand_id,
            status=LicenseBrandStatus.ACTIVE,
            activated_at=now,
            expires_at=expires_at,
            assigned_by=assigned_by,
            assigned_at=now,
            brand_name=brand_name,
            created_at=now,
            updated_at=now,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at is not None and self.expires_at < (now or utcnow())

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return self.status == LicenseBrandStatus.ACTIVE and not self.is_expired(now)

    def days_until_expiry(self, now: Optional[datetime] = None) -> Optional[int]:
        return _days_until(self.expires_at, now or utcnow())

    def has_permission(self, name: str) -> bool:
        """A grant without a permissions map allows everything."""
        if not self.permissions:
            return True
        return self.permissions.get(name) is True

    def has_restriction(self, name: str) -> bool:
        """A grant without a restrictions map restricts nothing."""
        if not self.restrictions:
            return False
        return self.restrictions.get(name) is True


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    ``max_access_count`` and ``max_devices`` of 0 mean unlimited.
    ``access_password`` always holds an encoded hash, never plaintext.
    """

    id: uuid.UUID
    license_key: str
    access_password: str
    user_id: uuid.UUID
    license_type_id: uuid.UUID
    status: LicenseStatus
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    access_count: int = 0
    max_access_count: int = 0
    max_devices: int = 0
    device_fingerprints: List[Dict[str, Any]] = field(default_factory=list)
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    assigned_by: Optional[uuid.UUID] = None
    assigned_at: Optional[datetime] = None
    assignment_reason: Optional[str] = None
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None
    brands: Tuple[LicenseBrand, ...] = ()
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    license_type_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate license entity."""
        if not self.license_key:
            raise ValueError("License key is required")
        if not self.access_password:
            raise ValueError("Access password is required")
        if self.status == LicenseStatus.EXPIRED:
            raise ValueError("Expired is a derived status and cannot be stored")
        if self.access_count < 0:
            raise ValueError("Access count cannot be negative")
        if self.max_access_count < 0:
            raise ValueError("Max access count cannot be negative")
        if self.max_devices < 0:
            raise ValueError("Max devices cannot be negative")

    @classmethod
    def create(
        cls,
        license_key: str,
        access_password: str,
        user_id: uuid.UUID,
        license_type_id: uuid.UUID,
        now: datetime,
        expires_at: Optional[datetime] = None,
        max_devices: int = 0,
        notes: Optional[str] = None,
        assigned_by: Optional[uuid.UUID] = None,
        assignment_reason: Optional[str] = None,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new License awaiting activation.

        Args:
            license_key: Generated license key
            access_password: Encoded password hash
            user_id: Holder UUID
            license_type_id: LicenseType UUID
            now: Issuance time
            expires_at: Optional expiration datetime
            max_devices: Device ceiling (0 = unlimited)
            notes: Free-form administrator notes
            assigned_by: Administrator who issued the license
            assignment_reason: Why the license was issued
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        return cls(
            id=license_id or uuid.uuid4(),
            license_key=license_key,
            access_password=access_password,
            user_id=user_id,
            license_type_id=license_type_id,
            status=LicenseStatus.PENDING_ACTIVATION,
            expires_at=expires_at,
            max_devices=max_devices,
            notes=notes,
            assigned_by=assigned_by,
            assigned_at=now,
            assignment_reason=assignment_reason,
            created_at=now,
            updated_at=now,
        )

    def with_changes(self, **changes) -> "License":
        """Return a copy with ``changes`` applied and re-validated."""
        return replace(self, **changes)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the license has passed its expiry.

        Args:
            now: Current time (defaults to utcnow)

        Returns:
            True if ``expires_at`` is set and in the past
        """
        return self.expires_at is not None and self.expires_at < (now or utcnow())

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Active status and not expired."""
        return self.status == LicenseStatus.ACTIVE and not self.is_expired(now)

    def has_access_remaining(self) -> bool:
        return self.max_access_count == 0 or self.access_count < self.max_access_count

    def can_access(self, now: Optional[datetime] = None) -> bool:
        """
        Check if one more access would be granted.

        Args:
            now: Current time (defaults to utcnow)

        Returns:
            True if the license is active and below its access ceiling
        """
        return self.is_active(now) and self.has_access_remaining()

    def can_add_device(self) -> bool:
        return self.max_devices == 0 or len(self.device_fingerprints) < self.max_devices

    def has_device(self, fingerprint: Optional[Dict[str, Any]]) -> bool:
        """Check if a device with the fingerprint's id is already registered."""
        device_id = device_id_of(fingerprint)
        if device_id is None:
            return False
        return any(device_id_of(device) == device_id for device in self.device_fingerprints)

    def days_until_expiry(self, now: Optional[datetime] = None) -> Optional[int]:
        """Whole days left until expiry, rounded up, or None without expiry."""
        return _days_until(self.expires_at, now or utcnow())

    def effective_status(self, now: Optional[datetime] = None) -> LicenseStatus:
        """Stored status, or EXPIRED once the license is past its expiry."""
        if self.is_expired(now):
            return LicenseStatus.EXPIRED
        return self.status

    def devices_after_access(
        self, fingerprint: Optional[Dict[str, Any]], now: datetime
    ) -> List[Dict[str, Any]]:
        """
        Device list as it would be after an access from ``fingerprint``.

        Known devices and fingerprint-less accesses leave the list as is.
        A new device is appended with an ``addedAt`` timestamp.
        """
        devices = list(self.device_fingerprints)
        if fingerprint is None or self.has_device(fingerprint):
            return devices
        record = dict(fingerprint)
        record[DEVICE_ADDED_AT_KEY] = now.isoformat()
        devices.append(record)
        return devices

    def get_brand(self, brand_id: uuid.UUID) -> Optional[LicenseBrand]:
        for license_brand in self.brands:
            if license_brand.brand_id == brand_id:
                return license_brand
        return None

    @property
    def brand_ids(self) -> List[uuid.UUID]:
        return [license_brand.brand_id for license_brand in self.brands]
