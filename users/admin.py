"""
Django admin configuration for users app.
"""

from django.contrib import admin

from users.infrastructure.models import ApiKey, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Admin interface for User model."""

    list_display = ["email", "first_name", "last_name", "role", "status", "created_at"]
    list_filter = ["role", "status", "created_at"]
    search_fields = ["email", "first_name", "last_name"]
    readonly_fields = ["id", "created_at", "updated_at", "deleted_at"]


@admin.register(ApiKey)
class ApiKeyAdmin(admin.ModelAdmin):
    """Admin interface for ApiKey model."""

    list_display = ["user", "key_prefix_display", "expires_at", "last_used_at", "created_at"]
    list_filter = ["created_at", "expires_at"]
    search_fields = ["user__email", "key_prefix"]
    readonly_fields = ["id", "key_prefix", "key_hash", "created_at", "last_used_at"]

    def key_prefix_display(self, obj):
        """Display key prefix."""
        return f"{obj.key_prefix}..."

    key_prefix_display.short_description = "Key"

    def save_model(self, request, obj, form, change):
        """Show the raw key once, right after creation."""
        super().save_model(request, obj, form, change)
        raw_key = getattr(obj, "_raw_key", None)
        if raw_key:
            self.message_user(request, f"API key created: {raw_key} (copy it now, it is not stored)")
