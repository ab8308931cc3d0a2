"""
Django implementation of UserRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from core.domain.value_objects import Email, UserRole, UserStatus
from users.domain.user import User
from users.infrastructure.models import User as UserModel
from users.ports.user_repository import UserRepository


class DjangoUserRepository(UserRepository):
    """
    Django ORM implementation of UserRepository.

    Soft-deleted users are invisible to every lookup.
    """

    def _to_domain(self, model: UserModel) -> User:
        """
        Convert Django model to domain entity.

        Args:
            model: Django User model

        Returns:
            User domain entity
        """
        return User(
            id=model.id,
            email=Email(model.email),
            first_name=model.first_name,
            last_name=model.last_name,
            role=UserRole(model.role),
            status=UserStatus(model.status),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @sync_to_async
    def save(self, user: User) -> User:
        """
        Save a user entity.

        Args:
            user: User entity to save

        Returns:
            Saved user entity
        """
        # pylint: disable=no-member
        model, _ = UserModel.objects.update_or_create(
            id=user.id,
            defaults={
                "email": str(user.email),
                "first_name": user.first_name,
                "last_name": user.last_name,
                "role": user.role.value,
                "status": user.status.value,
            },
        )
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """
        Find a user by ID.

        Args:
            user_id: User UUID

        Returns:
            User entity or None if not found
        """
        # pylint: disable=no-member
        model = UserModel.objects.alive().filter(id=user_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_email(self, email: str) -> Optional[User]:
        """
        Find a user by email address.

        Args:
            email: Email address

        Returns:
            User entity or None if not found
        """
        normalized = (email or "").strip().lower()
        # pylint: disable=no-member
        model = UserModel.objects.alive().filter(email=normalized).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def create_if_absent(self, email: str, status: UserStatus) -> User:
        """
        Return the user with this email, creating it when missing.

        A concurrent insert of the same email loses on the unique
        constraint and re-reads the winner's row.

        Args:
            email: Email address
            status: Status given to a newly created user

        Returns:
            Existing or newly created User entity
        """
        normalized = str(Email.normalized(email))
        # pylint: disable=no-member
        existing = UserModel.objects.alive().filter(email=normalized).first()
        if existing:
            return self._to_domain(existing)
        try:
            with transaction.atomic():
                model = UserModel.objects.create(email=normalized, status=status.value)
        except IntegrityError:
            model = UserModel.objects.alive().get(email=normalized)
        return self._to_domain(model)
