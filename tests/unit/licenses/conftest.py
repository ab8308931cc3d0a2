"""
In-memory repositories for handler unit tests.
"""

import pytest

from brands.ports.brand_repository import BrandRepository
from core.domain.exceptions import DuplicateLicenseError
from core.domain.pagination import Page
from core.domain.value_objects import UserStatus
from license_types.ports.license_type_repository import LicenseTypeRepository
from licenses.ports.license_repository import LicenseRepository, LicenseStats
from users.domain.user import User
from users.ports.user_repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self.users = {}

    async def save(self, user):
        self.users[user.id] = user
        return user

    async def find_by_id(self, user_id):
        return self.users.get(user_id)

    async def find_by_email(self, email):
        normalized = email.strip().lower()
        for user in self.users.values():
            if str(user.email) == normalized:
                return user
        return None

    async def create_if_absent(self, email, status=UserStatus.ACTIVE):
        existing = await self.find_by_email(email)
        if existing:
            return existing
        return await self.save(User.create(email=email, status=status))


class InMemoryBrandRepository(BrandRepository):
    def __init__(self):
        self.brands = {}

    async def save(self, brand):
        self.brands[brand.id] = brand
        return brand

    async def find_by_id(self, brand_id):
        return self.brands.get(brand_id)

    async def find_by_ids(self, brand_ids):
        return {brand_id: self.brands[brand_id] for brand_id in brand_ids if brand_id in self.brands}


class InMemoryLicenseTypeRepository(LicenseTypeRepository):
    def __init__(self):
        self.license_types = {}

    async def save(self, license_type):
        self.license_types[license_type.id] = license_type
        return license_type

    async def find_by_id(self, license_type_id):
        return self.license_types.get(license_type_id)


class InMemoryLicenseRepository(LicenseRepository):
    """Keeps licenses in a dict; only the issuance paths are exercised."""

    def __init__(self):
        self.licenses = {}

    async def create_with_brands(self, license, license_brands):
        for existing in self.licenses.values():
            if (existing.user_id, existing.license_type_id) == (license.user_id, license.license_type_id):
                raise DuplicateLicenseError()
        stored = license.with_changes(brands=tuple(license_brands))
        self.licenses[license.id] = stored
        return stored

    async def find_by_id(self, license_id):
        return self.licenses.get(license_id)

    async def find_by_key(self, license_key):
        for license in self.licenses.values():
            if license.license_key == license_key:
                return license
        return None

    async def find_by_user_and_type(self, user_id, license_type_id):
        for license in self.licenses.values():
            if (license.user_id, license.license_type_id) == (user_id, license_type_id):
                return license
        return None

    async def find_by_user(self, user_id):
        return [license for license in self.licenses.values() if license.user_id == user_id]

    async def list_filtered(self, page_request, filters=None):
        items = list(self.licenses.values())
        return Page(items=items, total=len(items), page=page_request.page, limit=page_request.limit)

    async def update_fields(self, license_id, **fields):
        if license_id not in self.licenses:
            return None
        self.licenses[license_id] = self.licenses[license_id].with_changes(**fields)
        return self.licenses[license_id]

    async def save_status(self, license, expected_status):
        stored = self.licenses.get(license.id)
        if stored is None or stored.status is not expected_status:
            return None
        self.licenses[license.id] = license
        return license

    async def mark_email_sent(self, license_id, sent_at):
        self.licenses[license_id] = self.licenses[license_id].with_changes(
            email_sent=True, email_sent_at=sent_at
        )

    async def record_access(self, license_id, device_fingerprint, now):
        raise NotImplementedError

    async def update_license_brand(self, license_id, brand_id, **fields):
        raise NotImplementedError

    async def soft_delete(self, license_id, now):
        return self.licenses.pop(license_id, None) is not None

    async def get_stats(self, now):
        return LicenseStats(total=len(self.licenses))

    async def find_expiring(self, within_days, now):
        return []


@pytest.fixture
def memory_users():
    return InMemoryUserRepository()


@pytest.fixture
def memory_brands():
    return InMemoryBrandRepository()


@pytest.fixture
def memory_license_types():
    return InMemoryLicenseTypeRepository()


@pytest.fixture
def memory_licenses():
    return InMemoryLicenseRepository()
