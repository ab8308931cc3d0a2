"""
Brand model.
"""

from django.db import models
from django.db.models import Q

from core.infrastructure.models import BaseModel


class Brand(BaseModel):
    """
    A catalog brand (e.g., a vehicle manufacturer) whose content
    licenses grant access to.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("maintenance", "Maintenance"),
    ]

    name = models.CharField(max_length=100, help_text="Brand display name")
    slug = models.SlugField(max_length=120, help_text="URL-safe identifier")
    description = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "brands"
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["name"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_brands_name_alive",
            ),
            models.UniqueConstraint(
                fields=["slug"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_brands_slug_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return self.name
