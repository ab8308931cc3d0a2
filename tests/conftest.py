"""
Pytest configuration and shared fixtures.
"""

import uuid

import pytest
from asgiref.sync import async_to_sync

from brands.domain.brand import Brand
from brands.infrastructure.repositories.django_brand_repository import DjangoBrandRepository
from core.domain.value_objects import UserRole, UserStatus
from core.infrastructure.events import event_bus
from license_types.domain.license_type import LicenseType
from license_types.infrastructure.repositories.django_license_type_repository import (
    DjangoLicenseTypeRepository,
)
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from licenses.ports.notifier import LicenseNotifier
from users.domain.user import User
from users.infrastructure.repositories.django_user_repository import DjangoUserRepository


class RecordingNotifier(LicenseNotifier):
    """Notifier that keeps every message it is asked to send."""

    def __init__(self):
        self.assignments = []
        self.expiry_notices = []

    async def send_license_assignment(self, message):
        self.assignments.append(message)

    async def send_expiry_notice(self, message):
        self.expiry_notices.append(message)

    def password_for(self, license_key):
        """Plaintext password sent for a license key."""
        for message in self.assignments:
            if message.license_key == license_key:
                return message.access_password
        raise KeyError(license_key)


class FailingNotifier(LicenseNotifier):
    """Notifier whose every delivery fails."""

    async def send_license_assignment(self, message):
        raise ConnectionError("SMTP server unavailable")

    async def send_expiry_notice(self, message):
        raise ConnectionError("SMTP server unavailable")


def _unique(prefix):
    return f"{prefix}{uuid.uuid4().hex[:8]}"


@pytest.fixture(autouse=True)
def isolated_event_bus():
    """Drop subscriptions added by a test."""
    yield event_bus
    event_bus.clear()


@pytest.fixture
def user_repository():
    """Fixture for UserRepository."""
    return DjangoUserRepository()


@pytest.fixture
def brand_repository():
    """Fixture for BrandRepository."""
    return DjangoBrandRepository()


@pytest.fixture
def license_type_repository():
    """Fixture for LicenseTypeRepository."""
    return DjangoLicenseTypeRepository()


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def notifier():
    """Fixture for a notifier recording outgoing messages."""
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    """Fixture for a notifier that always fails."""
    return FailingNotifier()


@pytest.fixture
def db_user(db, user_repository):
    """Fixture for an active User saved in database."""
    user = User.create(email=f"{_unique('holder')}@example.com", status=UserStatus.ACTIVE)
    return async_to_sync(user_repository.save)(user)


@pytest.fixture
def db_brand(db, brand_repository):
    """Fixture for an active Brand saved in database."""
    return async_to_sync(brand_repository.save)(Brand.create(name=_unique("Brand")))


@pytest.fixture
def db_brands(db, brand_repository):
    """Fixture for two active Brands saved in database."""
    return [
        async_to_sync(brand_repository.save)(Brand.create(name=_unique("Brand")))
        for _ in range(2)
    ]


@pytest.fixture
def db_license_type(db, license_type_repository):
    """Fixture for a one-year, three-device LicenseType saved in database."""
    code = _unique("pro")
    license_type = LicenseType.create(
        name=code.title(),
        code=code,
        validity_days=365,
        max_devices=3,
        supported_platforms=["windows", "macos"],
        download_url="https://downloads.example.com/pro",
    )
    return async_to_sync(license_type_repository.save)(license_type)


@pytest.fixture
def issue_handler(
    user_repository, license_type_repository, brand_repository, license_repository, notifier
):
    """Fixture for IssueLicenseHandler wired to the database and a recording notifier."""
    return IssueLicenseHandler(
        user_repository=user_repository,
        license_type_repository=license_type_repository,
        brand_repository=brand_repository,
        license_repository=license_repository,
        notifier=notifier,
    )


@pytest.fixture
def issued_license(db_user, db_license_type, db_brand, issue_handler):
    """Fixture for a license issued through the workflow, awaiting activation."""
    return async_to_sync(issue_handler.handle)(
        IssueLicenseCommand(
            user_id=db_user.id,
            license_type_id=db_license_type.id,
            brand_ids=[db_brand.id],
        )
    )


@pytest.fixture
def active_license(issued_license, license_repository):
    """Fixture for an issued license that has been activated."""
    from licenses.application.commands.change_license_status import ChangeLicenseStatusCommand
    from licenses.application.handlers.license_lifecycle_handlers import ActivateLicenseHandler

    handler = ActivateLicenseHandler(license_repository=license_repository)
    return async_to_sync(handler.handle)(ChangeLicenseStatusCommand(license_id=issued_license.id))


@pytest.fixture
def admin_api_key(db):
    """Fixture for the raw API key of an active administrator."""
    from users.infrastructure.models import ApiKey
    from users.infrastructure.models import User as UserModel

    admin = UserModel.objects.create(
        email=f"{_unique('admin')}@example.com",
        role=UserRole.ADMIN.value,
        status=UserStatus.ACTIVE.value,
    )
    api_key = ApiKey(user=admin)
    api_key.save()
    return api_key._raw_key


@pytest.fixture
def user_api_key(db_user):
    """Fixture for the raw API key of the license holder ``db_user``."""
    from users.infrastructure.models import ApiKey

    api_key = ApiKey(user_id=db_user.id)
    api_key.save()
    return api_key._raw_key


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def admin_client(api_client, admin_api_key):
    """API client authenticated as an administrator."""
    api_client.credentials(HTTP_X_API_KEY=admin_api_key)
    return api_client
