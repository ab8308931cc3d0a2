"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from core.domain.events import DomainEvent, utcnow


@dataclass(frozen=True)
class LicenseIssued(DomainEvent):
    """Event raised when a license is issued to a user."""

    license_id: uuid.UUID
    license_key: str
    user_id: uuid.UUID
    license_type_id: uuid.UUID
    brand_ids: Tuple[uuid.UUID, ...]
    assigned_by: Optional[uuid.UUID]
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "license_key": self.license_key,
                "user_id": str(self.user_id),
                "license_type_id": str(self.license_type_id),
                "brand_ids": [str(brand_id) for brand_id in self.brand_ids],
                "assigned_by": str(self.assigned_by) if self.assigned_by else None,
            }
        )
        return data


@dataclass(frozen=True)
class LicenseAccessed(DomainEvent):
    """Event raised when an access attempt is granted and recorded."""

    license_id: uuid.UUID
    access_count: int
    device_id: Optional[str]
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"access_count": self.access_count, "device_id": self.device_id})
        return data


@dataclass(frozen=True)
class LicenseStatusChanged(DomainEvent):
    """Event raised when a license moves between statuses."""

    license_id: uuid.UUID
    old_status: str
    new_status: str
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"old_status": self.old_status, "new_status": self.new_status})
        return data


@dataclass(frozen=True)
class LicenseUpdated(DomainEvent):
    """Event raised when license or license-brand attributes change."""

    license_id: uuid.UUID
    changed_fields: List[str]
    brand_id: Optional[uuid.UUID] = None
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "changed_fields": list(self.changed_fields),
                "brand_id": str(self.brand_id) if self.brand_id else None,
            }
        )
        return data


@dataclass(frozen=True)
class LicenseDeleted(DomainEvent):
    """Event raised when a license is soft-deleted."""

    license_id: uuid.UUID
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=utcnow)

    @property
    def aggregate_id(self) -> str:
        return str(self.license_id)
