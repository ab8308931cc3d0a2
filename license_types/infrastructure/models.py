"""
LicenseType model.
"""

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from core.infrastructure.models import BaseModel


class LicenseType(BaseModel):
    """
    A license plan defining validity and device rules for issued licenses.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("deprecated", "Deprecated"),
    ]

    name = models.CharField(max_length=100)
    code = models.CharField(max_length=50, help_text="Short code (e.g., 'pro', 'trial')")
    description = models.TextField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    validity_days = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text="Days a license stays valid; empty for no expiry",
    )
    max_devices = models.PositiveIntegerField(
        null=True, blank=True, help_text="Device ceiling; empty or 0 for unlimited"
    )
    max_users = models.PositiveIntegerField(null=True, blank=True)
    supported_platforms = models.JSONField(default=list, blank=True)
    download_url = models.URLField(max_length=500, null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="USD")
    sort_order = models.IntegerField(default=0)

    class Meta:
        db_table = "license_types"
        ordering = ["sort_order", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["name"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_license_types_name_alive",
            ),
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_license_types_code_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.code})"
