"""
LicenseType repository port (interface).
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from license_types.domain.license_type import LicenseType


class LicenseTypeRepository(ABC):
    """
    Abstract repository for LicenseType entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, license_type: LicenseType) -> LicenseType:
        """
        Save a license type entity.

        Args:
            license_type: LicenseType entity to save

        Returns:
            Saved license type entity
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_type_id: uuid.UUID) -> Optional[LicenseType]:
        """
        Find a license type by ID.

        Args:
            license_type_id: LicenseType UUID

        Returns:
            LicenseType entity or None if not found
        """
        pass
