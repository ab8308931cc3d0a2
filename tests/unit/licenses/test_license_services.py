"""
Unit tests for license domain services.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import AlreadyInStateError, InvalidTransitionError
from core.domain.value_objects import LicenseStatus
from licenses.domain.credentials import hash_secret
from licenses.domain.license import License
from licenses.domain.services import AccessDenialReason, AccessPolicy, LicenseLifecycleManager

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
PASSWORD = "Abcdef123456"


@pytest.fixture
def pending_license():
    return License.create(
        license_key="LIC-LT3KX9Q0-0A1B2C3D",
        access_password=hash_secret(PASSWORD),
        user_id=uuid.uuid4(),
        license_type_id=uuid.uuid4(),
        now=NOW - timedelta(days=1),
    )


@pytest.fixture
def active_license(pending_license):
    return LicenseLifecycleManager.activate(pending_license, NOW)


class TestLicenseLifecycleManager:
    """Tests for license status transitions."""

    def test_activate_sets_activated_at(self, pending_license):
        license = LicenseLifecycleManager.activate(pending_license, NOW)

        assert license.status == LicenseStatus.ACTIVE
        assert license.activated_at == NOW
        assert license.updated_at == NOW

    def test_reactivation_keeps_first_activation_time(self, active_license):
        later = NOW + timedelta(days=5)
        suspended = LicenseLifecycleManager.suspend(active_license, later)

        reactivated = LicenseLifecycleManager.activate(suspended, later + timedelta(days=1))

        assert reactivated.activated_at == NOW

    def test_activate_twice_fails(self, active_license):
        with pytest.raises(AlreadyInStateError):
            LicenseLifecycleManager.activate(active_license, NOW)

    @pytest.mark.parametrize(
        "transition,status",
        [
            (LicenseLifecycleManager.deactivate, LicenseStatus.INACTIVE),
            (LicenseLifecycleManager.suspend, LicenseStatus.SUSPENDED),
            (LicenseLifecycleManager.revoke, LicenseStatus.REVOKED),
        ],
    )
    def test_transitions(self, active_license, transition, status):
        license = transition(active_license, NOW)

        assert license.status == status
        assert license.activated_at == active_license.activated_at
        with pytest.raises(AlreadyInStateError):
            transition(license, NOW)

    def test_transitions_leave_counters_alone(self, active_license):
        used = active_license.with_changes(access_count=7, device_fingerprints=[{"deviceId": "a"}])

        suspended = LicenseLifecycleManager.suspend(used, NOW)

        assert suspended.access_count == 7
        assert suspended.device_fingerprints == [{"deviceId": "a"}]

    @pytest.mark.parametrize(
        "transition",
        [
            LicenseLifecycleManager.activate,
            LicenseLifecycleManager.deactivate,
            LicenseLifecycleManager.suspend,
        ],
    )
    def test_revoked_is_terminal(self, active_license, transition):
        revoked = LicenseLifecycleManager.revoke(active_license, NOW)

        with pytest.raises(InvalidTransitionError):
            transition(revoked, NOW)

    def test_pending_license_can_be_revoked(self, pending_license):
        assert LicenseLifecycleManager.revoke(pending_license, NOW).status == LicenseStatus.REVOKED


class TestAccessPolicy:
    """Tests for access attempt evaluation."""

    def test_granted(self, active_license):
        assert AccessPolicy.evaluate(active_license, PASSWORD, None, NOW) is None

    def test_unknown_key(self):
        assert AccessPolicy.evaluate(None, PASSWORD, None, NOW) == AccessDenialReason.INVALID_KEY

    def test_pending_license_is_not_allowed(self, pending_license):
        reason = AccessPolicy.evaluate(pending_license, PASSWORD, None, NOW)

        assert reason == AccessDenialReason.ACCESS_NOT_ALLOWED

    def test_expired_license_is_not_allowed(self, active_license):
        expired = active_license.with_changes(expires_at=NOW - timedelta(minutes=1))

        reason = AccessPolicy.evaluate(expired, PASSWORD, None, NOW)

        assert reason == AccessDenialReason.ACCESS_NOT_ALLOWED

    def test_access_ceiling_is_checked_before_password(self, active_license):
        exhausted = active_license.with_changes(max_access_count=2, access_count=2)

        reason = AccessPolicy.evaluate(exhausted, "wrong", None, NOW)

        assert reason == AccessDenialReason.ACCESS_NOT_ALLOWED

    def test_wrong_password(self, active_license):
        reason = AccessPolicy.evaluate(active_license, "wrong", None, NOW)

        assert reason == AccessDenialReason.INVALID_PASSWORD

    def test_password_is_checked_before_devices(self, active_license):
        full = active_license.with_changes(max_devices=1, device_fingerprints=[{"deviceId": "a"}])

        reason = AccessPolicy.evaluate(full, "wrong", {"deviceId": "b"}, NOW)

        assert reason == AccessDenialReason.INVALID_PASSWORD

    def test_new_device_over_ceiling(self, active_license):
        full = active_license.with_changes(max_devices=1, device_fingerprints=[{"deviceId": "a"}])

        assert AccessPolicy.evaluate(full, PASSWORD, {"deviceId": "b"}, NOW) == (
            AccessDenialReason.DEVICE_LIMIT_EXCEEDED
        )
        assert AccessPolicy.evaluate(full, PASSWORD, {"deviceId": "a"}, NOW) is None
        assert AccessPolicy.evaluate(full, PASSWORD, None, NOW) is None

    def test_check_state_skips_password(self, active_license):
        assert AccessPolicy.check_state(active_license, None, NOW) is None
        suspended = LicenseLifecycleManager.suspend(active_license, NOW)
        assert AccessPolicy.check_state(suspended, None, NOW) == (
            AccessDenialReason.ACCESS_NOT_ALLOWED
        )
