"""
Integration tests for access validation.
"""

import asyncio
import threading
from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.db import connection, connections
from django.db.models import F

from core.domain.events import utcnow
from core.domain.exceptions import ValidationError
from licenses.application.commands.change_license_status import ChangeLicenseStatusCommand
from licenses.application.commands.validate_access import ValidateAccessCommand
from licenses.application.handlers.license_lifecycle_handlers import SuspendLicenseHandler
from licenses.application.handlers.validate_access_handler import ValidateAccessHandler
from licenses.domain.events import LicenseAccessed
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository


class StaleSnapshotRepository(DjangoLicenseRepository):
    """Serves the license as it was before other writers touched it."""

    def __init__(self, snapshot):
        self.snapshot = snapshot

    async def find_by_key(self, license_key):
        return self.snapshot


class InterleavedAccessRepository(DjangoLicenseRepository):
    """Lets plain accesses land between each locked read and its write."""

    def __init__(self, interleaved_accesses):
        self.remaining = interleaved_accesses

    def _guarded_update(self, guarded, changes):
        if self.remaining:
            self.remaining -= 1
            LicenseModel.objects.alive().update(
                access_count=F("access_count") + 1, updated_at=utcnow()
            )
        return super()._guarded_update(guarded, changes)


class RecordingHandler:
    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


@pytest.fixture
def validate_handler(license_repository):
    return ValidateAccessHandler(license_repository=license_repository)


@pytest.fixture
def credentials(active_license, notifier):
    """License key and plaintext password of ``active_license``."""
    return active_license.license_key, notifier.password_for(active_license.license_key)


def validate(handler, license_key, password, fingerprint=None):
    return async_to_sync(handler.handle)(
        ValidateAccessCommand(
            license_key=license_key, access_password=password, device_fingerprint=fingerprint
        )
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateAccess:
    """Integration tests for ValidateAccessHandler."""

    def test_granted_access_is_recorded(self, validate_handler, credentials, isolated_event_bus):
        recorder = RecordingHandler()
        isolated_event_bus.subscribe(LicenseAccessed, recorder)
        license_key, password = credentials

        result = validate(validate_handler, license_key, password, {"deviceId": "laptop", "os": "linux"})

        assert result.valid is True
        assert result.reason is None
        assert result.license.access_count == 1
        assert result.license.device_count == 1
        assert result.license.last_accessed_at is not None
        model = LicenseModel.objects.get(license_key=license_key)
        assert model.access_count == 1
        assert model.device_fingerprints[0]["deviceId"] == "laptop"
        assert "addedAt" in model.device_fingerprints[0]
        assert recorder.events[0].device_id == "laptop"

    def test_unknown_key(self, validate_handler, credentials):
        _, password = credentials

        result = validate(validate_handler, "LIC-NOPE-00000000", password)

        assert result.valid is False
        assert result.reason == "invalid_key"
        assert result.license is None

    def test_blank_key(self, validate_handler):
        assert validate(validate_handler, "   ", "whatever").reason == "invalid_key"

    def test_wrong_password_is_not_counted(self, validate_handler, credentials):
        license_key, _ = credentials

        result = validate(validate_handler, license_key, "not-the-password")

        assert result.reason == "invalid_password"
        assert result.message == "Invalid password"
        assert LicenseModel.objects.get(license_key=license_key).access_count == 0

    def test_pending_license_is_not_allowed(self, validate_handler, issued_license, notifier):
        password = notifier.password_for(issued_license.license_key)

        result = validate(validate_handler, issued_license.license_key, password)

        assert result.reason == "access_not_allowed"

    def test_suspended_license_is_not_allowed(self, validate_handler, credentials, active_license, license_repository):
        async_to_sync(SuspendLicenseHandler(license_repository).handle)(
            ChangeLicenseStatusCommand(license_id=active_license.id)
        )

        assert validate(validate_handler, *credentials).reason == "access_not_allowed"

    def test_expired_license_is_not_allowed(self, validate_handler, credentials, active_license):
        LicenseModel.objects.filter(id=active_license.id).update(expires_at=utcnow() - timedelta(seconds=1))

        result = validate(validate_handler, *credentials)

        assert result.reason == "access_not_allowed"
        assert LicenseModel.objects.get(id=active_license.id).status == "active"

    def test_access_ceiling(self, validate_handler, credentials, active_license):
        LicenseModel.objects.filter(id=active_license.id).update(max_access_count=2)

        results = [validate(validate_handler, *credentials) for _ in range(3)]

        assert [result.valid for result in results] == [True, True, False]
        assert results[2].reason == "access_not_allowed"
        assert LicenseModel.objects.get(id=active_license.id).access_count == 2

    def test_device_ceiling(self, validate_handler, credentials, active_license):
        LicenseModel.objects.filter(id=active_license.id).update(max_devices=1)

        first = validate(validate_handler, *credentials, {"deviceId": "phone"})
        again = validate(validate_handler, *credentials, {"deviceId": "phone"})
        other = validate(validate_handler, *credentials, {"deviceId": "tablet"})
        anonymous = validate(validate_handler, *credentials)

        assert first.valid and again.valid and anonymous.valid
        assert other.reason == "device_limit_exceeded"
        model = LicenseModel.objects.get(id=active_license.id)
        assert [device["deviceId"] for device in model.device_fingerprints] == ["phone"]
        assert model.access_count == 3

    def test_fingerprint_without_device_id(self, validate_handler, credentials):
        with pytest.raises(ValidationError):
            validate(validate_handler, *credentials, {"os": "linux"})

    def test_status_is_never_changed(self, validate_handler, credentials, active_license):
        validate(validate_handler, *credentials)

        assert LicenseModel.objects.get(id=active_license.id).status == "active"


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateAccessRaces:
    """Access ceilings hold when attempts overlap."""

    def test_stale_snapshot_cannot_pass_access_ceiling(self, credentials, active_license, license_repository):
        LicenseModel.objects.filter(id=active_license.id).update(max_access_count=1)
        snapshot = async_to_sync(license_repository.find_by_id)(active_license.id)
        handler = ValidateAccessHandler(license_repository=StaleSnapshotRepository(snapshot))

        first = validate(handler, *credentials)
        second = validate(handler, *credentials)

        assert first.valid is True
        assert second.valid is False
        assert second.reason == "access_not_allowed"
        assert LicenseModel.objects.get(id=active_license.id).access_count == 1

    def test_stale_snapshot_cannot_pass_device_ceiling(self, credentials, active_license, license_repository):
        LicenseModel.objects.filter(id=active_license.id).update(max_devices=1)
        snapshot = async_to_sync(license_repository.find_by_id)(active_license.id)
        handler = ValidateAccessHandler(license_repository=StaleSnapshotRepository(snapshot))

        first = validate(handler, *credentials, {"deviceId": "a"})
        second = validate(handler, *credentials, {"deviceId": "b"})

        assert first.valid is True
        assert second.reason == "device_limit_exceeded"
        devices = LicenseModel.objects.get(id=active_license.id).device_fingerprints
        assert [device["deviceId"] for device in devices] == ["a"]

    def test_new_device_outlasts_plain_accesses(self, credentials, active_license):
        handler = ValidateAccessHandler(license_repository=InterleavedAccessRepository(5))

        result = validate(handler, *credentials, {"deviceId": "late-laptop"})

        assert result.valid is True
        model = LicenseModel.objects.get(id=active_license.id)
        assert model.access_count == 6
        assert [device["deviceId"] for device in model.device_fingerprints] == ["late-laptop"]

    def test_gathered_attempts_respect_access_ceiling(self, validate_handler, credentials, active_license):
        LicenseModel.objects.filter(id=active_license.id).update(max_access_count=3)
        license_key, password = credentials

        async def attempt_all():
            return await asyncio.gather(
                *(
                    validate_handler.handle(
                        ValidateAccessCommand(license_key=license_key, access_password=password)
                    )
                    for _ in range(8)
                )
            )

        results = async_to_sync(attempt_all)()

        assert sum(result.valid for result in results) == 3
        assert LicenseModel.objects.get(id=active_license.id).access_count == 3


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestValidateAccessThreads:
    """Row locking under real parallelism; needs a database that honours FOR UPDATE."""

    @pytest.fixture(autouse=True)
    def require_row_locks(self):
        if connection.vendor != "postgresql":
            pytest.skip("SELECT ... FOR UPDATE is only enforced on PostgreSQL")

    def test_parallel_attempts_respect_ceilings(self, credentials, active_license):
        LicenseModel.objects.filter(id=active_license.id).update(max_access_count=5, max_devices=2)
        license_key, password = credentials
        results = []
        lock = threading.Lock()

        def attempt(index):
            handler = ValidateAccessHandler(license_repository=DjangoLicenseRepository())
            try:
                result = validate(handler, license_key, password, {"deviceId": f"device-{index}"})
                with lock:
                    results.append(result)
            finally:
                connections.close_all()

        threads = [threading.Thread(target=attempt, args=(index,)) for index in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        granted = [result for result in results if result.valid]
        model = LicenseModel.objects.get(id=active_license.id)
        assert len(granted) == 2
        assert model.access_count == 2
        assert len(model.device_fingerprints) == 2
