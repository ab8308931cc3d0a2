"""
Unit tests for Brand and LicenseType domain entities.
"""

import uuid

import pytest

from brands.domain.brand import Brand
from core.domain.value_objects import BrandStatus, LicenseTypeStatus
from license_types.domain.license_type import LicenseType


class TestBrandEntity:
    """Tests for Brand domain entity."""

    def test_create_brand(self):
        """Test creating a brand entity."""
        brand = Brand.create(name="  Mercedes Benz ")

        assert brand.name == "Mercedes Benz"
        assert brand.slug == "mercedes-benz"
        assert brand.is_active
        assert isinstance(brand.id, uuid.UUID)
        assert brand.created_at is not None

    def test_create_brand_with_id(self):
        """Test creating a brand with specific ID."""
        brand_id = uuid.uuid4()

        brand = Brand.create(name="Toyota", brand_id=brand_id)

        assert brand.id == brand_id

    def test_inactive_brand(self):
        assert not Brand.create(name="Saab", status=BrandStatus.INACTIVE).is_active
        assert not Brand.create(name="Rover", status=BrandStatus.MAINTENANCE).is_active

    def test_empty_name(self):
        with pytest.raises(ValueError, match="empty"):
            Brand.create(name="   ")


class TestLicenseTypeEntity:
    """Tests for LicenseType domain entity."""

    def test_create_license_type(self):
        license_type = LicenseType.create(name="Pro", code="pro", validity_days=30, max_devices=2)

        assert license_type.is_active
        assert license_type.has_expiry
        assert license_type.currency == "USD"

    def test_lifetime_plan(self):
        assert not LicenseType.create(name="Lifetime", code="life").has_expiry

    def test_deprecated_plan_is_inactive(self):
        license_type = LicenseType.create(name="Old", code="old", status=LicenseTypeStatus.DEPRECATED)

        assert not license_type.is_active

    def test_invalid_validity(self):
        with pytest.raises(ValueError):
            LicenseType.create(name="Broken", code="broken", validity_days=0)

    def test_download_links_per_platform(self):
        license_type = LicenseType.create(
            name="Pro",
            code="pro",
            supported_platforms=["windows", "linux"],
            download_url="https://downloads.example.com/pro",
        )

        assert license_type.download_links("https://example.com/default") == [
            ("windows", "https://downloads.example.com/pro"),
            ("linux", "https://downloads.example.com/pro"),
        ]

    def test_download_links_fall_back_to_default_url(self):
        license_type = LicenseType.create(name="Pro", code="pro", supported_platforms=["android"])

        assert license_type.download_links("https://example.com/default") == [
            ("android", "https://example.com/default")
        ]
        assert license_type.download_links() == []
