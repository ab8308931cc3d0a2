"""
IssueLicenseCommand and AssignLicenseCommand.

Commands to issue a license to a known user or to an email address.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class IssueLicenseCommand:
    """Command to issue a license to an existing user."""

    user_id: uuid.UUID
    license_type_id: uuid.UUID
    brand_ids: List[uuid.UUID] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    assigned_by: Optional[uuid.UUID] = None
    assignment_reason: Optional[str] = None
    # Id of the authenticated caller, used when assigned_by is not given.
    principal_id: Optional[uuid.UUID] = None


@dataclass
class AssignLicenseCommand:
    """Command to issue a license to an email, creating the user if needed."""

    email: str
    license_type_id: uuid.UUID
    brand_ids: List[uuid.UUID] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    notes: Optional[str] = None
    assigned_by: Optional[uuid.UUID] = None
    assignment_reason: Optional[str] = None
    principal_id: Optional[uuid.UUID] = None
