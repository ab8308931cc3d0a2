"""
Shared model base classes.
"""
import uuid

from django.db import models


class SoftDeleteQuerySet(models.QuerySet):
    """QuerySet aware of the ``deleted_at`` tombstone."""

    def alive(self):
        """Rows that have not been soft-deleted."""
        return self.filter(deleted_at__isnull=True)

    def dead(self):
        """Soft-deleted rows."""
        return self.filter(deleted_at__isnull=False)


class BaseModel(models.Model):
    """
    UUID primary key, audit timestamps and a soft-delete tombstone.

    Every read path must go through ``objects.alive()`` and every
    unique constraint must be scoped by ``deleted_at IS NULL``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
