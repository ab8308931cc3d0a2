"""
Django admin configuration for brands app.
"""

from django.contrib import admin

from brands.infrastructure.models import Brand


@admin.register(Brand)
class BrandAdmin(admin.ModelAdmin):
    """Admin interface for Brand model."""

    list_display = ["name", "slug", "status", "sort_order", "created_at"]
    list_filter = ["status", "created_at", "updated_at"]
    search_fields = ["name", "slug"]
    readonly_fields = ["id", "created_at", "updated_at", "deleted_at"]
    prepopulated_fields = {"slug": ("name",)}
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "name", "slug", "description", "status", "sort_order"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at", "deleted_at"),
                "classes": ("collapse",),
            },
        ),
    )
