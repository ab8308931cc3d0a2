"""
License and LicenseBrand models.
"""
from django.core.validators import MaxValueValidator
from django.db import models
from django.db.models import Q

from core.infrastructure.models import BaseModel
from licenses.domain.license import MAX_DEVICES_LIMIT


class License(BaseModel):
    """
    A license issued to a user under a license type.

    ``license_key`` and ``access_password`` are generated by the issuance
    workflow before insert; the model never fills them in on save.
    """

    STATUS_CHOICES = [
        ("pending_activation", "Pending Activation"),
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("suspended", "Suspended"),
        ("revoked", "Revoked"),
    ]

    license_key = models.CharField(max_length=100, unique=True, editable=False)
    access_password = models.CharField(
        max_length=255, editable=False, help_text="Encoded password hash"
    )
    user = models.ForeignKey("users.User", on_delete=models.PROTECT, related_name="licenses")
    license_type = models.ForeignKey(
        "license_types.LicenseType", on_delete=models.PROTECT, related_name="licenses"
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="pending_activation"
    )
    activated_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    last_accessed_at = models.DateTimeField(null=True, blank=True)
    access_count = models.PositiveIntegerField(default=0)
    max_access_count = models.PositiveIntegerField(
        default=0, help_text="Maximum number of accesses; 0 for unlimited"
    )
    max_devices = models.PositiveIntegerField(
        default=0,
        validators=[MaxValueValidator(MAX_DEVICES_LIMIT)],
        help_text="Maximum number of devices; 0 for unlimited",
    )
    device_fingerprints = models.JSONField(default=list, blank=True)
    notes = models.TextField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)
    assigned_by = models.UUIDField(null=True, blank=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    assignment_reason = models.TextField(null=True, blank=True)
    email_sent = models.BooleanField(default=False)
    email_sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "license_type"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_licenses_user_type_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["expires_at"]),
            models.Index(fields=["user", "status"]),
        ]

    def __str__(self):
        return self.license_key


class LicenseBrand(BaseModel):
    """
    Grants a license access to one brand.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("inactive", "Inactive"),
        ("suspended", "Suspended"),
    ]

    license = models.ForeignKey(License, on_delete=models.CASCADE, related_name="license_brands")
    brand = models.ForeignKey("brands.Brand", on_delete=models.PROTECT, related_name="license_brands")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active")
    activated_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    access_count = models.PositiveIntegerField(default=0)
    last_accessed_at = models.DateTimeField(null=True, blank=True)
    permissions = models.JSONField(null=True, blank=True)
    restrictions = models.JSONField(null=True, blank=True)
    notes = models.TextField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)
    assigned_by = models.UUIDField(null=True, blank=True)
    assigned_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "license_brands"
        ordering = ["created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["license", "brand"],
                condition=Q(deleted_at__isnull=True),
                name="uniq_license_brands_license_brand_alive",
            ),
        ]
        indexes = [
            models.Index(fields=["license", "status"]),
        ]

    def __str__(self):
        return f"{self.license.license_key} - {self.brand.name}"
