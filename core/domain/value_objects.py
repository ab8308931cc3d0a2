"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import uuid
from abc import ABC
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")

    @classmethod
    def normalized(cls, raw: str) -> "Email":
        """Build an email from user input, trimmed and lower-cased."""
        return cls((raw or "").strip().lower())

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


class LicenseStatus(Enum):
    """License status value object."""

    PENDING_ACTIVATION = "pending_activation"
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    REVOKED = "revoked"
    # Derived from expires_at, never stored.
    EXPIRED = "expired"

    @classmethod
    def stored(cls):
        """Statuses that can be persisted on a license row."""
        return [status for status in cls if status is not cls.EXPIRED]

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class LicenseBrandStatus(Enum):
    """Status of a license's access to one brand."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"

    def __str__(self) -> str:
        return self.value


class UserStatus(Enum):
    """User account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"

    def __str__(self) -> str:
        return self.value


class UserRole(Enum):
    """User role."""

    ADMIN = "admin"
    USER = "user"

    def __str__(self) -> str:
        return self.value


class BrandStatus(Enum):
    """Brand catalog status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"

    def __str__(self) -> str:
        return self.value


class LicenseTypeStatus(Enum):
    """License type (plan) status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    DEPRECATED = "deprecated"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Principal(ValueObject):
    """
    Authenticated caller attached to a request by the identity gate.

    The license core trusts the gate and only reads id and role.
    """

    id: uuid.UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        """Check if the principal holds the admin role."""
        return self.role == UserRole.ADMIN
