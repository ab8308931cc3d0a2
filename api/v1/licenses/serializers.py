"""
Serializers for License API endpoints.

Response serializers never expose the access password.
"""

from rest_framework import serializers

from core.domain.pagination import MAX_PAGE_SIZE, SortOrder
from core.domain.value_objects import LicenseBrandStatus, LicenseStatus
from licenses.domain.license import DEVICE_ID_KEY, MAX_DEVICES_LIMIT


class IssueLicenseRequestSerializer(serializers.Serializer):
    """Serializer for issue license request."""

    user_id = serializers.UUIDField()
    license_type_id = serializers.UUIDField()
    brand_ids = serializers.ListField(child=serializers.UUIDField(), min_length=1)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    assigned_by = serializers.UUIDField(required=False, allow_null=True)
    assignment_reason = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, max_length=1000
    )

    def validate_brand_ids(self, value):
        """Reject duplicate brand ids."""
        if len(set(value)) != len(value):
            raise serializers.ValidationError("Brand ids must be unique")
        return value


class AssignLicenseRequestSerializer(IssueLicenseRequestSerializer):
    """Serializer for assign license request."""

    user_id = None
    email = serializers.EmailField()


class ValidateAccessRequestSerializer(serializers.Serializer):
    """Serializer for access validation request."""

    license_key = serializers.CharField(max_length=100)
    access_password = serializers.CharField(max_length=255, trim_whitespace=False)
    device_fingerprint = serializers.DictField(required=False, allow_null=True)

    def validate_device_fingerprint(self, value):
        """Require a device id inside the fingerprint."""
        if value is not None and not value.get(DEVICE_ID_KEY):
            raise serializers.ValidationError(f"'{DEVICE_ID_KEY}' is required")
        return value


class UpdateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for update license request. Status is not updatable here."""

    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    max_access_count = serializers.IntegerField(required=False, min_value=0)
    max_devices = serializers.IntegerField(required=False, min_value=0, max_value=MAX_DEVICES_LIMIT)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class UpdateLicenseBrandRequestSerializer(serializers.Serializer):
    """Serializer for update license brand request."""

    status = serializers.ChoiceField(
        choices=[status.value for status in LicenseBrandStatus], required=False
    )
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    permissions = serializers.DictField(required=False, allow_null=True)
    restrictions = serializers.DictField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ChangeLicenseStatusRequestSerializer(serializers.Serializer):
    """Serializer for lifecycle requests."""

    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class ListLicensesQuerySerializer(serializers.Serializer):
    """Serializer for list licenses query parameters."""

    page = serializers.IntegerField(required=False, default=1, min_value=1)
    limit = serializers.IntegerField(required=False, default=10, min_value=1, max_value=MAX_PAGE_SIZE)
    search = serializers.CharField(required=False, allow_blank=True)
    sort_by = serializers.CharField(required=False)
    sort_order = serializers.ChoiceField(
        choices=[order.value for order in SortOrder], required=False, default=SortOrder.DESC.value
    )
    status = serializers.ChoiceField(choices=[status.value for status in LicenseStatus], required=False)
    user_id = serializers.UUIDField(required=False)
    license_type_id = serializers.UUIDField(required=False)
    brand_id = serializers.UUIDField(required=False)
    expired = serializers.BooleanField(required=False, allow_null=True, default=None)
    expiring_within_days = serializers.IntegerField(required=False, min_value=0)


class LicenseBrandSerializer(serializers.Serializer):
    """Serializer for LicenseBrandDTO."""

    id = serializers.UUIDField()
    brand_id = serializers.UUIDField()
    brand_name = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    is_active = serializers.BooleanField()
    activated_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    days_until_expiry = serializers.IntegerField(allow_null=True)
    access_count = serializers.IntegerField()
    last_accessed_at = serializers.DateTimeField(allow_null=True)
    permissions = serializers.DictField(allow_null=True)
    restrictions = serializers.DictField(allow_null=True)
    notes = serializers.CharField(allow_null=True)
    assigned_by = serializers.UUIDField(allow_null=True)
    assigned_at = serializers.DateTimeField(allow_null=True)


class LicenseSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.UUIDField()
    license_key = serializers.CharField()
    user_id = serializers.UUIDField()
    user_email = serializers.EmailField(allow_null=True)
    license_type_id = serializers.UUIDField()
    license_type_name = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    effective_status = serializers.CharField()
    is_active = serializers.BooleanField()
    is_expired = serializers.BooleanField()
    can_access = serializers.BooleanField()
    activated_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    days_until_expiry = serializers.IntegerField(allow_null=True)
    last_accessed_at = serializers.DateTimeField(allow_null=True)
    access_count = serializers.IntegerField()
    max_access_count = serializers.IntegerField()
    max_devices = serializers.IntegerField()
    device_count = serializers.IntegerField()
    device_fingerprints = serializers.ListField(child=serializers.DictField())
    notes = serializers.CharField(allow_null=True)
    assigned_by = serializers.UUIDField(allow_null=True)
    assigned_at = serializers.DateTimeField(allow_null=True)
    assignment_reason = serializers.CharField(allow_null=True)
    email_sent = serializers.BooleanField()
    email_sent_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)
    brands = LicenseBrandSerializer(many=True)


class LicensePageSerializer(serializers.Serializer):
    """Serializer for LicensePageDTO."""

    items = LicenseSerializer(many=True)
    total = serializers.IntegerField()
    page = serializers.IntegerField()
    limit = serializers.IntegerField()
    total_pages = serializers.IntegerField()
    has_next_page = serializers.BooleanField()
    has_previous_page = serializers.BooleanField()


class AccessValidationResultSerializer(serializers.Serializer):
    """Serializer for AccessValidationResult."""

    valid = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)
    message = serializers.CharField(allow_null=True)
    license = LicenseSerializer(allow_null=True)


class LicenseStatsSerializer(serializers.Serializer):
    """Serializer for LicenseStats."""

    total = serializers.IntegerField()
    by_status = serializers.DictField(child=serializers.IntegerField())
    expired = serializers.IntegerField()
    expiring_in_7_days = serializers.IntegerField()
    expiring_in_30_days = serializers.IntegerField()
    by_license_type = serializers.DictField(child=serializers.IntegerField())
