"""
GetLicenseKeyQuery.
"""
from dataclasses import dataclass


@dataclass
class GetLicenseKeyQuery:
    """Query to get the license key of an entitled user."""

    user_id: str
