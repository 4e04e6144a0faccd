"""
DebugCreateLicenseCommand.

Development-only: grant a license from a customer's latest subscription.
"""
from dataclasses import dataclass


@dataclass
class DebugCreateLicenseCommand:
    """Command to create a license from a billing customer id."""

    user_id: str
    customer_id: str
