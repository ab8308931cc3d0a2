"""
NotifyExpiringLicensesCommand.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotifyExpiringLicensesCommand:
    """Command to remind holders of licenses expiring soon."""

    within_days: Optional[int] = None
