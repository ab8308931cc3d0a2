"""
Django admin configuration for licenses app.

Licenses are issued through the API so that credentials are generated
and emailed; the admin is for inspection and light edits only.
"""
from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import License, LicenseBrand


class LicenseBrandInline(admin.TabularInline):
    """Brand grants shown on the license page."""

    model = LicenseBrand
    extra = 0
    fields = ["brand", "status", "activated_at", "expires_at", "access_count", "deleted_at"]
    readonly_fields = ["activated_at", "access_count", "deleted_at"]
    can_delete = False


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "license_key",
        "user",
        "license_type",
        "status_badge",
        "access_count",
        "max_access_count",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "license_type", "email_sent", "created_at"]
    search_fields = ["license_key", "user__email", "notes"]
    readonly_fields = [
        "id",
        "license_key",
        "access_count",
        "device_fingerprints",
        "last_accessed_at",
        "activated_at",
        "assigned_by",
        "assigned_at",
        "email_sent",
        "email_sent_at",
        "created_at",
        "updated_at",
        "deleted_at",
    ]
    exclude = ["access_password"]
    inlines = [LicenseBrandInline]

    def status_badge(self, obj):
        """Display status with color."""
        colors = {
            "pending_activation": "gray",
            "active": "green",
            "inactive": "gray",
            "suspended": "orange",
            "revoked": "red",
        }
        color = colors.get(obj.status, "gray")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.get_status_display(),
        )

    status_badge.short_description = "Status"

    def has_add_permission(self, request):
        return False

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("user", "license_type")
