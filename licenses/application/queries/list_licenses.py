"""
ListLicensesQuery and ListUserLicensesQuery.
"""
import uuid
from dataclasses import dataclass, field

from core.domain.pagination import PageRequest
from licenses.ports.license_repository import LicenseFilters


@dataclass
class ListLicensesQuery:
    """Query to list licenses one page at a time."""

    page_request: PageRequest = field(default_factory=PageRequest)
    filters: LicenseFilters = field(default_factory=LicenseFilters)


@dataclass
class ListUserLicensesQuery:
    """Query to list the licenses held by one user."""

    user_id: uuid.UUID
