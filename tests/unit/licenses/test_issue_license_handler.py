"""
Unit tests for IssueLicenseHandler and AssignLicenseHandler.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from brands.domain.brand import Brand
from core.domain.exceptions import (
    BrandNotFoundError,
    ConflictError,
    InactiveResourceError,
    LicenseTypeNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from core.domain.value_objects import BrandStatus, LicenseStatus, LicenseTypeStatus, UserStatus
from core.infrastructure.events import event_bus
from license_types.domain.license_type import LicenseType
from licenses.application.commands.issue_license import AssignLicenseCommand, IssueLicenseCommand
from licenses.application.handlers.issue_license_handler import (
    AssignLicenseHandler,
    IssueLicenseHandler,
    compute_expiry,
)
from licenses.domain.credentials import verify_secret
from licenses.domain.events import LicenseIssued
from users.domain.user import User


class RecordingNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    async def send_license_assignment(self, message):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.messages.append(message)

    async def send_expiry_notice(self, message):
        self.messages.append(message)


class RecordingHandler:
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


@pytest.fixture
def catalog(memory_users, memory_brands, memory_license_types):
    """A holder, a one-year plan and two brands."""

    async def build():
        user = await memory_users.save(User.create(email="Holder@Example.com", status=UserStatus.ACTIVE))
        license_type = await memory_license_types.save(
            LicenseType.create(name="Pro", code="pro", validity_days=365, max_devices=2)
        )
        brands = [
            await memory_brands.save(Brand.create(name="Toyota")),
            await memory_brands.save(Brand.create(name="Honda")),
        ]
        return user, license_type, brands

    return build


def make_handler(memory_users, memory_license_types, memory_brands, memory_licenses, notifier):
    return IssueLicenseHandler(
        user_repository=memory_users,
        license_type_repository=memory_license_types,
        brand_repository=memory_brands,
        license_repository=memory_licenses,
        notifier=notifier,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def handler(memory_users, memory_license_types, memory_brands, memory_licenses, notifier):
    return make_handler(memory_users, memory_license_types, memory_brands, memory_licenses, notifier)


class TestComputeExpiry:
    """Tests for expiry computation."""

    NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_explicit_expiry_wins(self):
        license_type = LicenseType.create(name="Pro", code="pro", validity_days=30)
        explicit = self.NOW + timedelta(days=3)

        assert compute_expiry(license_type, self.NOW, explicit) == explicit

    def test_validity_days(self):
        license_type = LicenseType.create(name="Pro", code="pro", validity_days=30)

        assert compute_expiry(license_type, self.NOW) == self.NOW + timedelta(days=30)

    def test_no_validity_means_no_expiry(self):
        license_type = LicenseType.create(name="Lifetime", code="life")

        assert compute_expiry(license_type, self.NOW) is None


@pytest.mark.asyncio
class TestIssueLicenseHandler:
    """Tests for IssueLicenseHandler."""

    async def test_issue_license_success(self, handler, catalog, memory_licenses, notifier):
        """Test successful license issuance."""
        user, license_type, brands = await catalog()

        result = await handler.handle(
            IssueLicenseCommand(
                user_id=user.id,
                license_type_id=license_type.id,
                brand_ids=[brand.id for brand in brands],
            )
        )

        assert result.status == LicenseStatus.PENDING_ACTIVATION.value
        assert result.max_devices == 2
        assert result.access_count == 0
        assert [brand.brand_name for brand in result.brands] == ["Toyota", "Honda"]
        assert result.expires_at - result.created_at == timedelta(days=365)
        assert all(brand.expires_at == result.expires_at for brand in result.brands)
        assert result.email_sent is True
        assert not hasattr(result, "access_password")

        stored = memory_licenses.licenses[result.id]
        (message,) = notifier.messages
        assert message.recipient_email == "holder@example.com"
        assert message.license_key == result.license_key
        assert message.brand_names == ["Toyota", "Honda"]
        assert stored.access_password != message.access_password
        assert verify_secret(message.access_password, stored.access_password)

    async def test_download_links_use_default_url(
        self, catalog, memory_users, memory_license_types, memory_brands, memory_licenses, notifier
    ):
        user, _, brands = await catalog()
        license_type = await memory_license_types.save(
            LicenseType.create(name="Mobile", code="mobile", supported_platforms=["ios", "android"])
        )
        handler = IssueLicenseHandler(
            user_repository=memory_users,
            license_type_repository=memory_license_types,
            brand_repository=memory_brands,
            license_repository=memory_licenses,
            notifier=notifier,
            default_download_url="https://example.com/download",
        )

        await handler.handle(
            IssueLicenseCommand(user_id=user.id, license_type_id=license_type.id, brand_ids=[brands[0].id])
        )

        (message,) = notifier.messages
        assert message.download_urls == [
            ("ios", "https://example.com/download"),
            ("android", "https://example.com/download"),
        ]

    async def test_assigned_by_defaults_to_principal(self, handler, catalog):
        user, license_type, brands = await catalog()
        principal_id = uuid.uuid4()

        result = await handler.handle(
            IssueLicenseCommand(
                user_id=user.id,
                license_type_id=license_type.id,
                brand_ids=[brands[0].id],
                principal_id=principal_id,
            )
        )

        assert result.assigned_by == principal_id
        assert result.brands[0].assigned_by == principal_id

    async def test_publishes_license_issued(self, handler, catalog):
        user, license_type, brands = await catalog()
        recorder = RecordingHandler()
        event_bus.subscribe(LicenseIssued, recorder)

        result = await handler.handle(
            IssueLicenseCommand(user_id=user.id, license_type_id=license_type.id, brand_ids=[brands[0].id])
        )

        (event,) = recorder.events
        assert event.license_id == result.id
        assert event.brand_ids == (brands[0].id,)

    async def test_user_not_found(self, handler, catalog):
        _, license_type, brands = await catalog()

        with pytest.raises(UserNotFoundError):
            await handler.handle(
                IssueLicenseCommand(
                    user_id=uuid.uuid4(), license_type_id=license_type.id, brand_ids=[brands[0].id]
                )
            )

    async def test_license_type_not_found(self, handler, catalog):
        user, _, brands = await catalog()

        with pytest.raises(LicenseTypeNotFoundError):
            await handler.handle(
                IssueLicenseCommand(user_id=user.id, license_type_id=uuid.uuid4(), brand_ids=[brands[0].id])
            )

    async def test_inactive_license_type(self, handler, catalog, memory_license_types, memory_licenses):
        user, _, brands = await catalog()
        retired = await memory_license_types.save(
            LicenseType.create(name="Legacy", code="legacy", status=LicenseTypeStatus.DEPRECATED)
        )

        with pytest.raises(InactiveResourceError):
            await handler.handle(
                IssueLicenseCommand(user_id=user.id, license_type_id=retired.id, brand_ids=[brands[0].id])
            )
        assert memory_licenses.licenses == {}

    async def test_brand_not_found(self, handler, catalog, memory_licenses):
        user, license_type, brands = await catalog()

        with pytest.raises(BrandNotFoundError):
            await handler.handle(
                IssueLicenseCommand(
                    user_id=user.id,
                    license_type_id=license_type.id,
                    brand_ids=[brands[0].id, uuid.uuid4()],
                )
            )
        assert memory_licenses.licenses == {}

    async def test_inactive_brand_writes_nothing(
        self, handler, catalog, memory_brands, memory_licenses, notifier
    ):
        user, license_type, brands = await catalog()
        closed = await memory_brands.save(Brand.create(name="Saab", status=BrandStatus.INACTIVE))

        with pytest.raises(InactiveResourceError) as exc_info:
            await handler.handle(
                IssueLicenseCommand(
                    user_id=user.id,
                    license_type_id=license_type.id,
                    brand_ids=[brands[0].id, closed.id],
                )
            )

        assert exc_info.value.resource_names == ["Saab"]
        assert memory_licenses.licenses == {}
        assert notifier.messages == []

    @pytest.mark.parametrize("brand_ids", [[], "duplicate"])
    async def test_brand_ids_must_be_present_and_distinct(self, handler, catalog, brand_ids):
        user, license_type, brands = await catalog()
        if brand_ids == "duplicate":
            brand_ids = [brands[0].id, brands[0].id]

        with pytest.raises(ValidationError):
            await handler.handle(
                IssueLicenseCommand(user_id=user.id, license_type_id=license_type.id, brand_ids=brand_ids)
            )

    async def test_second_license_of_same_type_conflicts(self, handler, catalog, memory_licenses):
        user, license_type, brands = await catalog()
        await handler.handle(
            IssueLicenseCommand(user_id=user.id, license_type_id=license_type.id, brand_ids=[brands[0].id])
        )

        with pytest.raises(ConflictError):
            await handler.handle(
                IssueLicenseCommand(
                    user_id=user.id, license_type_id=license_type.id, brand_ids=[brands[1].id]
                )
            )
        assert len(memory_licenses.licenses) == 1

    async def test_notifier_failure_keeps_license(
        self, catalog, memory_users, memory_license_types, memory_brands, memory_licenses
    ):
        failing = make_handler(
            memory_users, memory_license_types, memory_brands, memory_licenses, RecordingNotifier(fail=True)
        )
        user, license_type, brands = await catalog()

        result = await failing.handle(
            IssueLicenseCommand(user_id=user.id, license_type_id=license_type.id, brand_ids=[brands[0].id])
        )

        assert result.email_sent is False
        assert memory_licenses.licenses[result.id].email_sent is False


@pytest.mark.asyncio
class TestAssignLicenseHandler:
    """Tests for AssignLicenseHandler."""

    async def test_assign_creates_user_once(self, handler, catalog, memory_users, memory_license_types):
        _, license_type, brands = await catalog()
        basic = await memory_license_types.save(LicenseType.create(name="Basic", code="basic"))
        assign = AssignLicenseHandler(user_repository=memory_users, issue_handler=handler)

        first = await assign.handle(
            AssignLicenseCommand(
                email=" New.Holder@Example.com ", license_type_id=license_type.id, brand_ids=[brands[0].id]
            )
        )
        second = await assign.handle(
            AssignLicenseCommand(
                email="new.holder@example.com", license_type_id=basic.id, brand_ids=[brands[1].id]
            )
        )

        assert first.user_id == second.user_id
        created = await memory_users.find_by_id(first.user_id)
        assert str(created.email) == "new.holder@example.com"
        assert created.status == UserStatus.ACTIVE
        assert second.expires_at is None

    async def test_assign_rejects_malformed_email(self, handler, memory_users):
        assign = AssignLicenseHandler(user_repository=memory_users, issue_handler=handler)

        with pytest.raises(ValidationError):
            await assign.handle(
                AssignLicenseCommand(email="not-an-email", license_type_id=uuid.uuid4(), brand_ids=[uuid.uuid4()])
            )
