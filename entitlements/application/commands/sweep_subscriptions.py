"""
SweepSubscriptionsCommand.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class SweepSubscriptionsCommand:
    """
    Command to re-check stored subscriptions against the billing provider.

    With ``dry_run`` the changes are computed and reported, not written.
    """

    dry_run: bool = False
    user_id: Optional[str] = None
