"""
ReconcileSubscriptionCommand.

Command to apply a billing provider subscription status to a user's entitlement.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ReconcileSubscriptionCommand:
    """
    Command to reconcile a user's entitlement.

    ``source`` labels where the signal came from (webhook, poll,
    auto_create, debug) for logs and metrics.
    """

    user_id: str
    status: str
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    license_key_if_new: Optional[str] = None
    promotion_code: Optional[str] = None
    source: str = "webhook"
