"""
Integration tests for the license issuance workflow.
"""

import uuid
from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync

from brands.infrastructure.models import Brand as BrandModel
from core.domain.events import utcnow
from core.domain.exceptions import ConflictError, InactiveResourceError
from core.domain.value_objects import LicenseStatus
from licenses.application.commands.issue_license import AssignLicenseCommand, IssueLicenseCommand
from licenses.application.handlers.issue_license_handler import (
    AssignLicenseHandler,
    IssueLicenseHandler,
)
from licenses.domain.credentials import verify_secret
from licenses.infrastructure.email_notifier import EmailLicenseNotifier
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.models import LicenseBrand as LicenseBrandModel
from users.infrastructure.models import User as UserModel


@pytest.mark.django_db
@pytest.mark.integration
class TestIssueLicense:
    """Integration tests for IssueLicenseHandler."""

    def test_issue_persists_license_and_brands(
        self, issue_handler, notifier, db_user, db_license_type, db_brands
    ):
        before = utcnow()

        result = async_to_sync(issue_handler.handle)(
            IssueLicenseCommand(
                user_id=db_user.id,
                license_type_id=db_license_type.id,
                brand_ids=[brand.id for brand in db_brands],
                notes="Fleet customer",
            )
        )

        model = LicenseModel.objects.get(id=result.id)
        assert model.status == LicenseStatus.PENDING_ACTIVATION.value
        assert model.max_devices == 3
        assert model.notes == "Fleet customer"
        assert model.email_sent is True
        assert model.email_sent_at is not None
        assert before + timedelta(days=365) <= model.expires_at <= utcnow() + timedelta(days=365)
        assert LicenseBrandModel.objects.filter(license_id=result.id).count() == 2
        assert all(
            grant.expires_at == model.expires_at
            for grant in LicenseBrandModel.objects.filter(license_id=result.id)
        )

        password = notifier.password_for(result.license_key)
        assert model.access_password != password
        assert verify_secret(password, model.access_password)

    def test_explicit_expiry(self, issue_handler, db_user, db_license_type, db_brand):
        expires_at = utcnow() + timedelta(days=10)

        result = async_to_sync(issue_handler.handle)(
            IssueLicenseCommand(
                user_id=db_user.id,
                license_type_id=db_license_type.id,
                brand_ids=[db_brand.id],
                expires_at=expires_at,
            )
        )

        assert result.expires_at == expires_at
        assert result.days_until_expiry == 10

    def test_second_issue_conflicts_with_other_brands(
        self, issue_handler, issued_license, db_user, db_license_type, db_brands
    ):
        with pytest.raises(ConflictError):
            async_to_sync(issue_handler.handle)(
                IssueLicenseCommand(
                    user_id=db_user.id,
                    license_type_id=db_license_type.id,
                    brand_ids=[brand.id for brand in db_brands],
                )
            )
        assert LicenseModel.objects.count() == 1

    def test_inactive_brand_leaves_no_rows(self, issue_handler, db_user, db_license_type, db_brands):
        BrandModel.objects.filter(id=db_brands[1].id).update(status="inactive")

        with pytest.raises(InactiveResourceError) as exc_info:
            async_to_sync(issue_handler.handle)(
                IssueLicenseCommand(
                    user_id=db_user.id,
                    license_type_id=db_license_type.id,
                    brand_ids=[brand.id for brand in db_brands],
                )
            )

        assert exc_info.value.resource_names == [db_brands[1].name]
        assert LicenseModel.objects.count() == 0
        assert LicenseBrandModel.objects.count() == 0

    def test_notifier_failure_keeps_license(
        self,
        user_repository,
        license_type_repository,
        brand_repository,
        license_repository,
        failing_notifier,
        db_user,
        db_license_type,
        db_brand,
    ):
        handler = IssueLicenseHandler(
            user_repository=user_repository,
            license_type_repository=license_type_repository,
            brand_repository=brand_repository,
            license_repository=license_repository,
            notifier=failing_notifier,
        )

        result = async_to_sync(handler.handle)(
            IssueLicenseCommand(
                user_id=db_user.id, license_type_id=db_license_type.id, brand_ids=[db_brand.id]
            )
        )

        model = LicenseModel.objects.get(id=result.id)
        assert model.email_sent is False
        assert model.email_sent_at is None

    def test_email_notifier_sends_credentials(
        self,
        user_repository,
        license_type_repository,
        brand_repository,
        license_repository,
        db_user,
        db_license_type,
        db_brand,
        mailoutbox,
    ):
        handler = IssueLicenseHandler(
            user_repository=user_repository,
            license_type_repository=license_type_repository,
            brand_repository=brand_repository,
            license_repository=license_repository,
            notifier=EmailLicenseNotifier(),
        )

        result = async_to_sync(handler.handle)(
            IssueLicenseCommand(
                user_id=db_user.id, license_type_id=db_license_type.id, brand_ids=[db_brand.id]
            )
        )

        (email,) = mailoutbox
        assert email.to == [str(db_user.email)]
        assert result.license_key in email.body
        assert db_brand.name in email.body
        assert "  - windows: https://downloads.example.com/pro" in email.body
        assert "  - macos: https://downloads.example.com/pro" in email.body
        assert result.email_sent is True


@pytest.mark.django_db
@pytest.mark.integration
class TestAssignLicense:
    """Integration tests for AssignLicenseHandler."""

    def test_assign_creates_user_once(self, user_repository, issue_handler, db_license_type, db_brand):
        handler = AssignLicenseHandler(user_repository=user_repository, issue_handler=issue_handler)

        result = async_to_sync(handler.handle)(
            AssignLicenseCommand(
                email="Driver@Example.com",
                license_type_id=db_license_type.id,
                brand_ids=[db_brand.id],
            )
        )
        with pytest.raises(ConflictError):
            async_to_sync(handler.handle)(
                AssignLicenseCommand(
                    email="driver@example.com",
                    license_type_id=db_license_type.id,
                    brand_ids=[db_brand.id],
                )
            )

        user = UserModel.objects.get(email="driver@example.com")
        assert user.status == "active"
        assert result.user_id == user.id
        assert UserModel.objects.filter(email="driver@example.com").count() == 1

    def test_assign_unknown_license_type_keeps_user(self, user_repository, issue_handler, db_brand):
        from core.domain.exceptions import LicenseTypeNotFoundError

        handler = AssignLicenseHandler(user_repository=user_repository, issue_handler=issue_handler)

        with pytest.raises(LicenseTypeNotFoundError):
            async_to_sync(handler.handle)(
                AssignLicenseCommand(
                    email="someone@example.com",
                    license_type_id=uuid.uuid4(),
                    brand_ids=[db_brand.id],
                )
            )
        assert LicenseModel.objects.count() == 0
