"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from core.domain.exceptions import AlreadyInStateError, InvalidTransitionError
from core.domain.value_objects import LicenseStatus
from licenses.domain.credentials import verify_secret
from licenses.domain.license import License


class AccessDenialReason(Enum):
    """Why an access attempt was refused."""

    INVALID_KEY = "invalid_key"
    ACCESS_NOT_ALLOWED = "access_not_allowed"
    INVALID_PASSWORD = "invalid_password"
    DEVICE_LIMIT_EXCEEDED = "device_limit_exceeded"

    def __str__(self) -> str:
        return self.value


class AccessPolicy:
    """Domain service deciding whether an access attempt is granted."""

    @staticmethod
    def device_allowed(license: License, fingerprint: Optional[Dict[str, Any]]) -> bool:
        """
        Check the device ceiling for an access from ``fingerprint``.

        Accesses without a fingerprint and from registered devices are
        always allowed.
        """
        if fingerprint is None or license.has_device(fingerprint):
            return True
        return license.can_add_device()

    @classmethod
    def check_state(
        cls,
        license: License,
        fingerprint: Optional[Dict[str, Any]],
        now: datetime,
    ) -> Optional[AccessDenialReason]:
        """
        Re-check the mutable parts of the decision on a fresh snapshot.

        Returns:
            Denial reason, or None if the access may be recorded
        """
        if not license.can_access(now):
            return AccessDenialReason.ACCESS_NOT_ALLOWED
        if not cls.device_allowed(license, fingerprint):
            return AccessDenialReason.DEVICE_LIMIT_EXCEEDED
        return None

    @classmethod
    def evaluate(
        cls,
        license: Optional[License],
        password: str,
        fingerprint: Optional[Dict[str, Any]],
        now: datetime,
    ) -> Optional[AccessDenialReason]:
        """
        Evaluate an access attempt.

        Checks run in a fixed order and stop at the first failure:
        unknown key, license state and access ceiling, password,
        device ceiling.

        Args:
            license: License found for the key, or None
            password: Plaintext password supplied by the client
            fingerprint: Optional device fingerprint
            now: Time of the attempt

        Returns:
            Denial reason, or None if access is granted
        """
        if license is None:
            return AccessDenialReason.INVALID_KEY
        if not license.can_access(now):
            return AccessDenialReason.ACCESS_NOT_ALLOWED
        if not verify_secret(password, license.access_password):
            return AccessDenialReason.INVALID_PASSWORD
        if not cls.device_allowed(license, fingerprint):
            return AccessDenialReason.DEVICE_LIMIT_EXCEEDED
        return None


class LicenseLifecycleManager:
    """
    Domain service for license status transitions.

    Revoked is terminal. Transitions only change ``status`` and, on
    first activation, ``activated_at``.
    """

    @staticmethod
    def _ensure_not_current(license: License, target: LicenseStatus) -> None:
        if license.status == target:
            raise AlreadyInStateError(f"License is already {target.value}")

    @staticmethod
    def _ensure_not_revoked(license: License, target: LicenseStatus) -> None:
        if license.status == LicenseStatus.REVOKED:
            raise InvalidTransitionError(
                f"Cannot change a revoked license to {target.value}"
            )

    @classmethod
    def activate(cls, license: License, now: datetime) -> License:
        """
        Activate a license.

        Args:
            license: License entity to activate
            now: Transition time

        Returns:
            Activated license entity

        Raises:
            AlreadyInStateError: If the license is already active
            InvalidTransitionError: If the license is revoked
        """
        cls._ensure_not_current(license, LicenseStatus.ACTIVE)
        cls._ensure_not_revoked(license, LicenseStatus.ACTIVE)
        return license.with_changes(
            status=LicenseStatus.ACTIVE,
            activated_at=license.activated_at or now,
            updated_at=now,
        )

    @classmethod
    def deactivate(cls, license: License, now: datetime) -> License:
        """Move a license to inactive."""
        cls._ensure_not_current(license, LicenseStatus.INACTIVE)
        cls._ensure_not_revoked(license, LicenseStatus.INACTIVE)
        return license.with_changes(status=LicenseStatus.INACTIVE, updated_at=now)

    @classmethod
    def suspend(cls, license: License, now: datetime) -> License:
        """Move a license to suspended."""
        cls._ensure_not_current(license, LicenseStatus.SUSPENDED)
        cls._ensure_not_revoked(license, LicenseStatus.SUSPENDED)
        return license.with_changes(status=LicenseStatus.SUSPENDED, updated_at=now)

    @classmethod
    def revoke(cls, license: License, now: datetime) -> License:
        """Revoke a license for good."""
        cls._ensure_not_current(license, LicenseStatus.REVOKED)
        return license.with_changes(status=LicenseStatus.REVOKED, updated_at=now)
