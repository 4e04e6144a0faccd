"""
Checkout and portal session commands.
"""
from dataclasses import dataclass


@dataclass
class CreateCheckoutSessionCommand:
    """Command to start a subscription checkout for a user."""

    user_id: str
    client_id: str


@dataclass
class CreatePortalSessionCommand:
    """Command to open the billing portal for a user."""

    user_id: str
    client_id: str
