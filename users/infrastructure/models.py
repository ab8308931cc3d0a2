"""
User and API Key models.
"""

import hashlib
import secrets
import uuid

from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.infrastructure.models import BaseModel


class User(BaseModel):
    """
    A license holder or an administrator.
    """

    ROLE_CHOICES = [
        ("admin", "Admin"),
        ("user", "User"),
    ]

    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("pending", "Pending"),
        ("suspended", "Suspended"),
    ]

    email = models.EmailField(max_length=255)
    first_name = models.CharField(max_length=100, null=True, blank=True)
    last_name = models.CharField(max_length=100, null=True, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="user")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    class Meta:
        db_table = "users"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_users_email_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        """Store emails normalized so lookups can be exact."""
        self.email = (self.email or "").strip().lower()
        super().save(*args, **kwargs)


class ApiKey(models.Model):
    """
    API keys that authenticate administrators against the admin API.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="api_keys")
    key_prefix = models.CharField(max_length=8, editable=False)
    key_hash = models.CharField(max_length=64, editable=False, db_index=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    last_used_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "api_keys"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.user.email} - {self.key_prefix}..."

    @staticmethod
    def hash_key(raw_key: str) -> str:
        return hashlib.sha256(raw_key.encode()).hexdigest()

    def save(self, *args, **kwargs):
        """Generate API key on first save."""
        if not self.key_hash:
            raw_key = secrets.token_urlsafe(32)
            self.key_prefix = raw_key[:8]
            self.key_hash = self.hash_key(raw_key)
            # Only available on the instance that created the key.
            self._raw_key = raw_key
        super().save(*args, **kwargs)

    def verify_key(self, raw_key: str) -> bool:
        """
        Verify a raw API key against the stored hash.

        Args:
            raw_key: The raw API key to verify

        Returns:
            True if key matches, False otherwise
        """
        return secrets.compare_digest(self.key_hash, self.hash_key(raw_key))

    def is_valid(self) -> bool:
        """
        Check if the API key is still valid.

        Returns:
            True if key is valid, False if expired
        """
        if self.expires_at and self.expires_at < timezone.now():
            return False
        return True

    def mark_used(self):
        """Update last_used_at timestamp."""
        self.last_used_at = timezone.now()
        self.save(update_fields=["last_used_at"])
