"""
Brand repository port (interface).

This defines the contract for brand catalog lookups.
Implementations are in the infrastructure layer.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from brands.domain.brand import Brand


class BrandRepository(ABC):
    """
    Abstract repository for Brand entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, brand: Brand) -> Brand:
        """
        Save a brand entity.

        Args:
            brand: Brand entity to save

        Returns:
            Saved brand entity
        """
        pass

    @abstractmethod
    async def find_by_id(self, brand_id: uuid.UUID) -> Optional[Brand]:
        """
        Find a brand by ID.

        Args:
            brand_id: Brand UUID

        Returns:
            Brand entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_ids(self, brand_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Brand]:
        """
        Find several brands in one round-trip.

        Args:
            brand_ids: Brand UUIDs

        Returns:
            Mapping of found brand id to Brand entity; missing ids are absent
        """
        pass
