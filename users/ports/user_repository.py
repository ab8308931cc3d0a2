"""
User repository port (interface).

This defines the contract for user directory operations.
Implementations are in the infrastructure layer.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from core.domain.value_objects import UserStatus
from users.domain.user import User


class UserRepository(ABC):
    """
    Abstract repository for User entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Save a user entity.

        Args:
            user: User entity to save

        Returns:
            Saved user entity
        """
        pass

    @abstractmethod
    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Find a user by ID.

        Args:
            user_id: User UUID

        Returns:
            User entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """
        Find a user by email address (case-insensitive).

        Args:
            email: Email address

        Returns:
            User entity or None if not found
        """
        pass

    @abstractmethod
    async def create_if_absent(self, email: str, status: UserStatus) -> User:
        """
        Return the user with this email, creating it when missing.

        Args:
            email: Email address
            status: Status given to a newly created user

        Returns:
            Existing or newly created User entity
        """
        pass
