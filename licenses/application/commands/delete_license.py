"""
DeleteLicenseCommand.
"""
import uuid
from dataclasses import dataclass


@dataclass
class DeleteLicenseCommand:
    """Command to soft-delete a license and its brand grants."""

    license_id: uuid.UUID
