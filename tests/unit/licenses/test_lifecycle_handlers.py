"""
Unit tests for lifecycle handlers.
"""

import uuid
from datetime import datetime, timezone

import pytest

from core.domain.exceptions import ConflictError, InvalidTransitionError
from core.domain.value_objects import LicenseStatus
from licenses.application.commands.change_license_status import ChangeLicenseStatusCommand
from licenses.application.handlers.license_lifecycle_handlers import (
    MAX_STATUS_WRITE_ATTEMPTS,
    ActivateLicenseHandler,
    SuspendLicenseHandler,
)
from licenses.domain.credentials import hash_secret
from licenses.domain.license import License

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def stored_license(memory_licenses):
    license = License.create(
        license_key="LIC-LT3KX9Q0-0A1B2C3D",
        access_password=hash_secret("Abcdef123456"),
        user_id=uuid.uuid4(),
        license_type_id=uuid.uuid4(),
        now=NOW,
    )
    memory_licenses.licenses[license.id] = license
    return license


@pytest.mark.asyncio
class TestLicenseTransitionHandlers:
    """Status writes are checked against the stored status."""

    async def test_transition_is_persisted(self, memory_licenses, stored_license):
        handler = ActivateLicenseHandler(memory_licenses)

        result = await handler.handle(ChangeLicenseStatusCommand(license_id=stored_license.id))

        assert result.status == "active"
        assert memory_licenses.licenses[stored_license.id].status == LicenseStatus.ACTIVE

    async def test_status_changed_between_read_and_write(self, memory_licenses, stored_license):
        revoked = stored_license.with_changes(status=LicenseStatus.REVOKED)

        class RevokedUnderneath(type(memory_licenses)):
            async def find_by_id(self, license_id):
                found = self.licenses.get(license_id)
                self.licenses[license_id] = revoked
                return found

        repository = RevokedUnderneath()
        repository.licenses = dict(memory_licenses.licenses)

        with pytest.raises(InvalidTransitionError):
            await ActivateLicenseHandler(repository).handle(
                ChangeLicenseStatusCommand(license_id=stored_license.id)
            )
        assert repository.licenses[stored_license.id].status == LicenseStatus.REVOKED

    async def test_gives_up_when_status_keeps_changing(self, memory_licenses, stored_license):
        attempts = []

        async def never_matches(license, expected_status):
            attempts.append(expected_status)
            return None

        memory_licenses.save_status = never_matches

        with pytest.raises(ConflictError) as exc_info:
            await SuspendLicenseHandler(memory_licenses).handle(
                ChangeLicenseStatusCommand(license_id=stored_license.id)
            )
        assert exc_info.value.code == "CONCURRENT_MODIFICATION"
        assert len(attempts) == MAX_STATUS_WRITE_ATTEMPTS
