"""
License credentials: access passwords and license keys.

Plaintext passwords only exist between generation and notification.
Everything persisted goes through ``hash_secret``.
"""

import secrets
import string
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from django.conf import settings
from django.contrib.auth.hashers import check_password, identify_hasher, make_password

from core.domain.events import utcnow
from core.domain.exceptions import ConfigurationError

SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

DEFAULT_KEY_PREFIX = "LIC"


class CharClass(Enum):
    """Character classes a generated password may draw from."""

    UPPERCASE = string.ascii_uppercase
    LOWERCASE = string.ascii_lowercase
    DIGITS = string.digits
    SYMBOLS = SYMBOLS


# Fixed concatenation order so the alphabet is stable for a given class set.
_CLASS_ORDER = (CharClass.UPPERCASE, CharClass.LOWERCASE, CharClass.DIGITS, CharClass.SYMBOLS)


class CredentialGenerator:
    """Generates random access passwords from a CSPRNG."""

    SECURE_LENGTH = 16
    USER_FRIENDLY_LENGTH = 12

    @staticmethod
    def alphabet(char_classes: Iterable[CharClass]) -> str:
        """
        Build the sampling alphabet for a set of character classes.

        Args:
            char_classes: Enabled character classes

        Returns:
            Concatenated alphabet

        Raises:
            ConfigurationError: If no class is enabled
        """
        enabled = set(char_classes)
        if not enabled:
            raise ConfigurationError("At least one character class must be enabled")
        return "".join(cls.value for cls in _CLASS_ORDER if cls in enabled)

    @classmethod
    def generate(cls, length: int, char_classes: Iterable[CharClass]) -> str:
        """
        Generate a password of ``length`` characters.

        Each position is drawn independently and uniformly from the
        alphabet, so a given class is not guaranteed to appear.

        Args:
            length: Number of characters
            char_classes: Enabled character classes

        Returns:
            Plaintext password

        Raises:
            ConfigurationError: If length is not positive or no class is enabled
        """
        if length < 1:
            raise ConfigurationError("Password length must be at least 1")
        alphabet = cls.alphabet(char_classes)
        return "".join(secrets.choice(alphabet) for _ in range(length))

    @classmethod
    def generate_secure(cls) -> str:
        """16 characters from all four classes."""
        return cls.generate(cls.SECURE_LENGTH, set(CharClass))

    @classmethod
    def generate_user_friendly(cls) -> str:
        """12 characters without symbols, easy to type from an email."""
        return cls.generate(
            cls.USER_FRIENDLY_LENGTH,
            {CharClass.UPPERCASE, CharClass.LOWERCASE, CharClass.DIGITS},
        )


def _to_base36(number: int) -> str:
    digits = string.digits + string.ascii_uppercase
    if number == 0:
        return "0"
    encoded = []
    while number:
        number, remainder = divmod(number, 36)
        encoded.append(digits[remainder])
    return "".join(reversed(encoded))


def generate_license_key(prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Generate a license key in format: PREFIX-TIME36-RAND8.

    TIME36 is the issuance time in milliseconds encoded in base 36 and
    RAND8 is eight uppercase hex characters from a CSPRNG. Uniqueness is
    ultimately enforced by the unique index on ``license_key``.

    Args:
        prefix: Key prefix (defaults to ``LICENSES["KEY_PREFIX"]``)
        now: Issuance time (defaults to utcnow)

    Returns:
        Generated license key string
    """
    prefix = prefix or _licenses_setting("KEY_PREFIX", DEFAULT_KEY_PREFIX)
    moment = now or utcnow()
    millis = int(moment.timestamp() * 1000)
    return f"{prefix}-{_to_base36(millis)}-{secrets.token_hex(4).upper()}"


def is_hashed(value: str) -> bool:
    """Check if ``value`` is already an encoded hash known to Django."""
    if not value:
        return False
    try:
        identify_hasher(value)
    except ValueError:
        return False
    return True


def hash_secret(plaintext: str, hasher: Optional[str] = None) -> str:
    """
    Hash an access password with the configured Django hasher.

    Values that are already encoded hashes are returned unchanged, so
    hashing is idempotent.

    Args:
        plaintext: Plaintext password
        hasher: Hasher algorithm name (defaults to ``LICENSES["PASSWORD_HASHER"]``)

    Returns:
        Encoded hash string
    """
    if not plaintext:
        raise ConfigurationError("Cannot hash an empty secret")
    if is_hashed(plaintext):
        return plaintext
    return make_password(plaintext, hasher=hasher or _licenses_setting("PASSWORD_HASHER", "default"))


def verify_secret(plaintext: str, encoded: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    The stored hash is never upgraded on verification.
    """
    if not plaintext or not encoded:
        return False
    return check_password(plaintext, encoded)


def _licenses_setting(name: str, default):
    return getattr(settings, "LICENSES", {}).get(name, default)
