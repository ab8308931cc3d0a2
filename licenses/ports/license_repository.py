"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from core.domain.pagination import Page, PageRequest
from core.domain.value_objects import LicenseStatus
from licenses.domain.license import License, LicenseBrand


@dataclass(frozen=True)
class LicenseFilters:
    """Optional filters for license listings. Unset filters match everything."""

    status: Optional[LicenseStatus] = None
    user_id: Optional[uuid.UUID] = None
    license_type_id: Optional[uuid.UUID] = None
    brand_id: Optional[uuid.UUID] = None
    expired: Optional[bool] = None
    expiring_within_days: Optional[int] = None


@dataclass(frozen=True)
class LicenseStats:
    """Aggregate license counts. Soft-deleted licenses are never counted."""

    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    expired: int = 0
    expiring_in_7_days: int = 0
    expiring_in_30_days: int = 0
    by_license_type: Dict[str, int] = field(default_factory=dict)


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    Every read excludes soft-deleted licenses.
    """

    @abstractmethod
    async def create_with_brands(
        self, license: License, license_brands: Sequence[LicenseBrand]
    ) -> License:
        """
        Insert a license and its brand grants in one transaction.

        Args:
            license: New License entity
            license_brands: Brand grants of the license

        Returns:
            Stored license with its brands loaded

        Raises:
            DuplicateLicenseError: If a unique index rejects the insert
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by its license key.

        Args:
            license_key: License key string

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_user_and_type(
        self, user_id: uuid.UUID, license_type_id: uuid.UUID
    ) -> Optional[License]:
        """
        Find the live license of a user for a license type.

        Args:
            user_id: User UUID
            license_type_id: LicenseType UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_user(self, user_id: uuid.UUID) -> List[License]:
        """
        Find all live licenses of a user, newest first.

        Args:
            user_id: User UUID

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def list_filtered(
        self, page_request: PageRequest, filters: Optional[LicenseFilters] = None
    ) -> Page:
        """
        List licenses one page at a time.

        Args:
            page_request: Page, size, search and ordering
            filters: Optional filters

        Returns:
            Page of License entities
        """
        pass

    @abstractmethod
    async def update_fields(self, license_id: uuid.UUID, **fields: Any) -> Optional[License]:
        """
        Update plain attributes of a license.

        Args:
            license_id: License UUID
            **fields: Attribute values keyed by field name

        Returns:
            Updated license or None if not found
        """
        pass

    @abstractmethod
    async def save_status(
        self, license: License, expected_status: LicenseStatus
    ) -> Optional[License]:
        """
        Persist ``status``, ``activated_at`` and ``updated_at`` of a license.

        Only writes while the stored status still equals ``expected_status``.

        Args:
            license: License entity after a transition
            expected_status: Status the transition was computed from

        Returns:
            Stored license, or None if the license is gone or its status
            changed since it was read
        """
        pass

    @abstractmethod
    async def mark_email_sent(self, license_id: uuid.UUID, sent_at: datetime) -> None:
        """
        Record that the issuance email was delivered.

        Args:
            license_id: License UUID
            sent_at: Delivery time
        """
        pass

    @abstractmethod
    async def record_access(
        self,
        license_id: uuid.UUID,
        device_fingerprint: Optional[Dict[str, Any]],
        now: datetime,
    ) -> Tuple[Optional[License], Optional[str]]:
        """
        Atomically record one granted access.

        The access ceiling and device ceiling are re-checked on the
        current row under a lock, so concurrent callers can never push
        ``access_count`` past ``max_access_count``.

        Args:
            license_id: License UUID
            device_fingerprint: Optional fingerprint to register
            now: Time of the access

        Returns:
            Tuple of (updated license, None) on success, or
            (current license or None, denial reason) when refused
        """
        pass

    @abstractmethod
    async def update_license_brand(
        self, license_id: uuid.UUID, brand_id: uuid.UUID, **fields: Any
    ) -> Optional[License]:
        """
        Update attributes of one brand grant.

        Args:
            license_id: License UUID
            brand_id: Brand UUID
            **fields: Attribute values keyed by field name

        Returns:
            Parent license with brands reloaded, or None if the grant
            does not exist
        """
        pass

    @abstractmethod
    async def soft_delete(self, license_id: uuid.UUID, now: datetime) -> bool:
        """
        Soft-delete a license together with its brand grants.

        Args:
            license_id: License UUID
            now: Deletion time

        Returns:
            True if a live license was deleted
        """
        pass

    @abstractmethod
    async def get_stats(self, now: datetime) -> LicenseStats:
        """
        Aggregate license counts.

        Args:
            now: Reference time for expiry buckets

        Returns:
            LicenseStats
        """
        pass

    @abstractmethod
    async def find_expiring(self, within_days: int, now: datetime) -> List[License]:
        """
        Find active licenses expiring in the next ``within_days`` days.

        Args:
            within_days: Look-ahead window
            now: Reference time

        Returns:
            List of License entities ordered by expiry
        """
        pass
