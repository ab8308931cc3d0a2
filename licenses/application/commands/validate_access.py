"""
ValidateAccessCommand.

Command issued by client software on every access attempt.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ValidateAccessCommand:
    """Command to validate and record an access attempt."""

    license_key: str
    access_password: str
    device_fingerprint: Optional[Dict[str, Any]] = None
