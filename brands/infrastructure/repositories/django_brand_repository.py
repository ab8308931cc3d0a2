"""
Django implementation of BrandRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Dict, Iterable, Optional

from asgiref.sync import sync_to_async

from brands.domain.brand import Brand
from brands.infrastructure.models import Brand as BrandModel
from brands.ports.brand_repository import BrandRepository
from core.domain.value_objects import BrandStatus


class DjangoBrandRepository(BrandRepository):
    """
    Django ORM implementation of BrandRepository.

    Soft-deleted brands are invisible to every lookup.
    """

    def _to_domain(self, model: BrandModel) -> Brand:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Brand model

        Returns:
            Brand domain entity
        """
        return Brand(
            id=model.id,
            name=model.name,
            slug=model.slug,
            status=BrandStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    def save(self, brand: Brand) -> Brand:
        """
        Save a brand entity.

        Args:
            brand: Brand entity to save

        Returns:
            Saved brand entity
        """
        # pylint: disable=no-member
        model, _ = BrandModel.objects.update_or_create(
            id=brand.id,
            defaults={
                "name": brand.name,
                "slug": brand.slug,
                "status": brand.status.value,
            },
        )
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, brand_id: uuid.UUID) -> Optional[Brand]:
        """
        Find a brand by ID.

        Args:
            brand_id: Brand UUID

        Returns:
            Brand entity or None if not found
        """
        # pylint: disable=no-member
        model = BrandModel.objects.alive().filter(id=brand_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_ids(self, brand_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Brand]:
        """
        Find several brands in one round-trip.

        Args:
            brand_ids: Brand UUIDs

        Returns:
            Mapping of found brand id to Brand entity
        """
        # pylint: disable=no-member
        models = BrandModel.objects.alive().filter(id__in=list(brand_ids))
        return {model.id: self._to_domain(model) for model in models}
