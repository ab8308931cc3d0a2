"""
ChangeLicenseStatusCommand.

Command shared by the activate, deactivate, suspend and revoke handlers.
"""
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class ChangeLicenseStatusCommand:
    """Command to move a license to another status."""

    license_id: uuid.UUID
    reason: Optional[str] = None
