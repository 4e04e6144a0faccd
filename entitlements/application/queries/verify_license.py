"""
VerifyLicenseQuery.
"""
from dataclasses import dataclass


@dataclass
class VerifyLicenseQuery:
    """Query to check a user's license key against the stored one."""

    user_id: str
    license_key: str
