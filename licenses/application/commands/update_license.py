"""
UpdateLicenseCommand and UpdateLicenseBrandCommand.

Only fields that are set are changed. ``UNSET`` distinguishes an omitted
field from an explicit ``None`` (which clears ``expires_at`` or ``notes``).
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class UpdateLicenseCommand:
    """Command to update a license's limits, expiry and notes."""

    license_id: uuid.UUID
    expires_at: Union[Optional[datetime], _Unset] = UNSET
    max_access_count: Union[int, _Unset] = UNSET
    max_devices: Union[int, _Unset] = UNSET
    notes: Union[Optional[str], _Unset] = UNSET

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on the command."""
        values = {
            "expires_at": self.expires_at,
            "max_access_count": self.max_access_count,
            "max_devices": self.max_devices,
            "notes": self.notes,
        }
        return {name: value for name, value in values.items() if value is not UNSET}


@dataclass
class UpdateLicenseBrandCommand:
    """Command to update one brand grant of a license."""

    license_id: uuid.UUID
    brand_id: uuid.UUID
    status: Union[Optional[str], _Unset] = UNSET
    expires_at: Union[Optional[datetime], _Unset] = UNSET
    permissions: Union[Optional[Dict[str, Any]], _Unset] = UNSET
    restrictions: Union[Optional[Dict[str, Any]], _Unset] = UNSET
    notes: Union[Optional[str], _Unset] = UNSET

    def changes(self) -> Dict[str, Any]:
        """Fields explicitly set on the command."""
        values = {
            "status": self.status,
            "expires_at": self.expires_at,
            "permissions": self.permissions,
            "restrictions": self.restrictions,
            "notes": self.notes,
        }
        return {name: value for name, value in values.items() if value is not UNSET}
