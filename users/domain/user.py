"""
User domain entity.

Users are the holders of licenses. The license core only reads a
user's identity, contact details and role.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import utcnow
from core.domain.value_objects import Email, UserRole, UserStatus


@dataclass(frozen=True)
class User:
    """
    User domain entity.

    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    email: Email
    first_name: Optional[str]
    last_name: Optional[str]
    role: UserRole
    status: UserStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        email: str,
        status: UserStatus = UserStatus.PENDING,
        role: UserRole = UserRole.USER,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> "User":
        """
        Create a new User entity.

        Args:
            email: Email address (normalized to lower case)
            status: Initial account status
            role: User role
            first_name: Optional first name
            last_name: Optional last name
            user_id: Optional UUID (generated if not provided)

        Returns:
            User entity instance
        """
        now = utcnow()
        return cls(
            id=user_id or uuid.uuid4(),
            email=Email.normalized(email),
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
            created_at=now,
            updated_at=now,
        )

    @property
    def full_name(self) -> str:
        """First and last name joined, empty when neither is set."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def display_name(self) -> str:
        """Name used in correspondence, falling back to the email."""
        return self.full_name or str(self.email)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
