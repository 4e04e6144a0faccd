"""
VerifyProStatusCommand.

Re-checks the live subscription before answering, so it may write.
"""
from dataclasses import dataclass


@dataclass
class VerifyProStatusCommand:
    """Command to verify a user's Pro status against the billing provider."""

    user_id: str
