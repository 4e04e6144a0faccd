"""
AutoCreateLicenseCommand.

Fallback for a missed checkout webhook: the client reports the
checkout session id it returned with.
"""
from dataclasses import dataclass


@dataclass
class AutoCreateLicenseCommand:
    """Command to create a license from a completed checkout session."""

    session_id: str
    user_id: str
