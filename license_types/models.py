"""
Model registry for the license_types app.
"""
from license_types.infrastructure.models import LicenseType  # noqa: F401
