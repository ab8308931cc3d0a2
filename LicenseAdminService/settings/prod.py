"""
Production settings for LicenseAdminService.
"""

import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = False

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# Security settings
SECURE_SSL_REDIRECT = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

if SECRET_KEY.startswith("django-insecure"):  # noqa: F405
    raise RuntimeError("DJANGO_SECRET_KEY must be set in production")

LOGGING = get_logging_config(
    "production", log_file=os.environ.get("LOG_FILE", "/var/log/license-admin/application.log")
)
