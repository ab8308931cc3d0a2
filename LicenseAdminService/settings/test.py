"""
Test settings for LicenseAdminService.
"""

import os

from .base import *  # noqa: F403, F401
from .base import database_from_url
from .logging import get_logging_config

DEBUG = False

# Use PostgreSQL in CI (from DATABASE_URL), SQLite in-memory for local tests
DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL and DATABASE_URL.startswith("postgresql"):
    DATABASES = {"default": database_from_url(DATABASE_URL)}
    DATABASES["default"]["TEST"] = {"NAME": DATABASES["default"]["NAME"] + "_test"}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": ":memory:",
        }
    }

# Fast salted hasher for tests; bcrypt stays available for explicit use.
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
    "django.contrib.auth.hashers.BCryptSHA256PasswordHasher",
]

LICENSES = {
    **LICENSES,  # noqa: F405
    "PASSWORD_HASHER": "md5",
    "SUPPORT_EMAIL": "support@example.com",
    "COMPANY_NAME": "Example Corp",
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_BROKER_URL = "memory://"

OTEL_ENABLED = False

LOGGING = get_logging_config("test")
