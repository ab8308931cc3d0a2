"""
License notifier port (interface).

Notifications are best-effort: callers log and swallow failures.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class LicenseAssignmentMessage:
    """
    Content of the email sent when a license is issued.

    This is the only place a plaintext access password ever travels.
    """

    recipient_email: str
    recipient_name: str
    license_key: str
    access_password: str
    license_type_name: str
    brand_names: List[str] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    download_urls: List[Tuple[str, str]] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"LicenseAssignmentMessage(recipient_email={self.recipient_email!r}, "
            f"license_key={self.license_key!r})"
        )


@dataclass(frozen=True)
class LicenseExpiryMessage:
    """Content of a license expiry reminder."""

    recipient_email: str
    recipient_name: str
    license_key: str
    license_type_name: str
    expires_at: datetime
    days_remaining: int


class LicenseNotifier(ABC):
    """Outbound notifications about licenses."""

    @abstractmethod
    async def send_license_assignment(self, message: LicenseAssignmentMessage) -> None:
        """
        Deliver license credentials to the holder.

        Args:
            message: Assignment message

        Raises:
            Exception: Any delivery failure
        """
        pass

    @abstractmethod
    async def send_expiry_notice(self, message: LicenseExpiryMessage) -> None:
        """
        Remind the holder that the license expires soon.

        Args:
            message: Expiry message
        """
        pass
