"""
GetLicenseQuery and GetLicenseByKeyQuery.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetLicenseQuery:
    """Query to get a license by id."""

    license_id: uuid.UUID


@dataclass
class GetLicenseByKeyQuery:
    """Query to get a license by its license key."""

    license_key: str
