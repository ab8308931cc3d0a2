"""
License DTOs for API responses.

DTOs never carry the access password hash.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.domain.events import utcnow
from core.domain.pagination import Page
from licenses.domain.license import License, LicenseBrand


@dataclass
class LicenseBrandDTO:
    """DTO for one brand grant of a license."""

    id: uuid.UUID
    brand_id: uuid.UUID
    brand_name: Optional[str]
    status: str
    is_active: bool
    activated_at: Optional[datetime]
    expires_at: Optional[datetime]
    days_until_expiry: Optional[int]
    access_count: int
    last_accessed_at: Optional[datetime]
    permissions: Optional[Dict[str, Any]]
    restrictions: Optional[Dict[str, Any]]
    notes: Optional[str]
    assigned_by: Optional[uuid.UUID]
    assigned_at: Optional[datetime]

    @classmethod
    def from_entity(cls, license_brand: LicenseBrand, now: datetime) -> "LicenseBrandDTO":
        return cls(
            id=license_brand.id,
            brand_id=license_brand.brand_id,
            brand_name=license_brand.brand_name,
            status=license_brand.status.value,
            is_active=license_brand.is_active(now),
            activated_at=license_brand.activated_at,
            expires_at=license_brand.expires_at,
            days_until_expiry=license_brand.days_until_expiry(now),
            access_count=license_brand.access_count,
            last_accessed_at=license_brand.last_accessed_at,
            permissions=license_brand.permissions,
            restrictions=license_brand.restrictions,
            notes=license_brand.notes,
            assigned_by=license_brand.assigned_by,
            assigned_at=license_brand.assigned_at,
        )


@dataclass
class LicenseDTO:
    """DTO for license information, including derived predicates."""

    id: uuid.UUID
    license_key: str
    user_id: uuid.UUID
    user_email: Optional[str]
    license_type_id: uuid.UUID
    license_type_name: Optional[str]
    status: str
    effective_status: str
    is_active: bool
    is_expired: bool
    can_access: bool
    activated_at: Optional[datetime]
    expires_at: Optional[datetime]
    days_until_expiry: Optional[int]
    last_accessed_at: Optional[datetime]
    access_count: int
    max_access_count: int
    max_devices: int
    device_count: int
    device_fingerprints: List[Dict[str, Any]]
    notes: Optional[str]
    assigned_by: Optional[uuid.UUID]
    assigned_at: Optional[datetime]
    assignment_reason: Optional[str]
    email_sent: bool
    email_sent_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    brands: List[LicenseBrandDTO] = field(default_factory=list)

    @classmethod
    def from_entity(cls, license: License, now: Optional[datetime] = None) -> "LicenseDTO":
        """
        Build a DTO from a License entity.

        Args:
            license: License entity
            now: Reference time for derived fields (defaults to utcnow)

        Returns:
            LicenseDTO
        """
        now = now or utcnow()
        return cls(
            id=license.id,
            license_key=license.license_key,
            user_id=license.user_id,
            user_email=license.user_email,
            license_type_id=license.license_type_id,
            license_type_name=license.license_type_name,
            status=license.status.value,
            effective_status=license.effective_status(now).value,
            is_active=license.is_active(now),
            is_expired=license.is_expired(now),
            can_access=license.can_access(now),
            activated_at=license.activated_at,
            expires_at=license.expires_at,
            days_until_expiry=license.days_until_expiry(now),
            last_accessed_at=license.last_accessed_at,
            access_count=license.access_count,
            max_access_count=license.max_access_count,
            max_devices=license.max_devices,
            device_count=len(license.device_fingerprints),
            device_fingerprints=list(license.device_fingerprints),
            notes=license.notes,
            assigned_by=license.assigned_by,
            assigned_at=license.assigned_at,
            assignment_reason=license.assignment_reason,
            email_sent=license.email_sent,
            email_sent_at=license.email_sent_at,
            created_at=license.created_at,
            updated_at=license.updated_at,
            brands=[LicenseBrandDTO.from_entity(brand, now) for brand in license.brands],
        )


@dataclass
class LicensePageDTO:
    """DTO for a page of licenses."""

    items: List[LicenseDTO]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def from_page(cls, page: Page, now: Optional[datetime] = None) -> "LicensePageDTO":
        now = now or utcnow()
        return cls(
            items=[LicenseDTO.from_entity(license, now) for license in page.items],
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            has_next_page=page.has_next_page,
            has_previous_page=page.has_previous_page,
        )


@dataclass
class AccessValidationResult:
    """Outcome of an access attempt."""

    valid: bool
    license: Optional[LicenseDTO] = None
    reason: Optional[str] = None
    message: Optional[str] = None


@dataclass
class NotificationRunResult:
    """Outcome of an expiry notification run."""

    checked: int = 0
    sent: int = 0
    failed: int = 0
