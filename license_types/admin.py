"""
Django admin configuration for license_types app.
"""

from django.contrib import admin

from license_types.infrastructure.models import LicenseType


@admin.register(LicenseType)
class LicenseTypeAdmin(admin.ModelAdmin):
    """Admin interface for LicenseType model."""

    list_display = ["name", "code", "status", "validity_days", "max_devices", "price"]
    list_filter = ["status", "created_at"]
    search_fields = ["name", "code"]
    readonly_fields = ["id", "created_at", "updated_at", "deleted_at"]
