"""
Brand domain entity.

A brand is a catalog entry whose content a license can grant access to.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import utcnow
from core.domain.value_objects import BrandStatus


@dataclass(frozen=True)
class Brand:
    """
    Brand domain entity.

    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    name: str
    slug: str
    status: BrandStatus
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate brand entity."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Brand name cannot be empty")
        if len(self.name) > 100:
            raise ValueError("Brand name too long")

    @classmethod
    def create(
        cls,
        name: str,
        slug: Optional[str] = None,
        status: BrandStatus = BrandStatus.ACTIVE,
        brand_id: Optional[uuid.UUID] = None,
    ) -> "Brand":
        """
        Create a new Brand entity.

        Args:
            name: Brand display name
            slug: URL-safe identifier (derived from the name if omitted)
            status: Catalog status
            brand_id: Optional UUID (generated if not provided)

        Returns:
            Brand entity instance
        """
        from django.utils.text import slugify

        now = utcnow()
        return cls(
            id=brand_id or uuid.uuid4(),
            name=name.strip(),
            slug=slug or slugify(name),
            status=status,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_active(self) -> bool:
        """Check if the brand can be attached to new licenses."""
        return self.status == BrandStatus.ACTIVE
