"""
GetLicenseStatsQuery.
"""
from dataclasses import dataclass


@dataclass
class GetLicenseStatsQuery:
    """Query for aggregate license counts."""
