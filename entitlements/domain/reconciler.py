"""
Entitlement reconciliation.

Maps a billing provider subscription signal (from a webhook or a poll)
onto the stored entitlement. The mapping is deterministic and idempotent:
applying the same signal twice yields the same record, and a license key
is issued at most once per record.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.value_objects import (
    ENDED_PROVIDER_STATUSES,
    PRO_PROVIDER_STATUSES,
    EntitlementStatus,
    Plan,
)
from entitlements.domain.entitlement import EntitlementRecord, utcnow
from entitlements.domain.license_key import generate_license_key

logger = logging.getLogger(__name__)

_KNOWN_STATUSES = frozenset(status.value for status in EntitlementStatus) | ENDED_PROVIDER_STATUSES


@dataclass(frozen=True)
class SubscriptionSignal:
    """
    Subscription state reported by the billing provider for one user.

    ``customer_id`` and ``subscription_id`` are merged into the record when
    present; ``None`` means "not reported", not "clear".
    """

    user_id: str
    status: str
    customer_id: Optional[str] = None
    subscription_id: Optional[str] = None
    license_key_if_new: Optional[str] = None
    promotion_code: Optional[str] = None


def normalize_status(raw_status: Optional[str]) -> str:
    """Lower-case and trim a provider status; empty becomes ``unknown``."""
    status = (raw_status or "").strip().lower()
    return status or EntitlementStatus.UNKNOWN.value


def reconcile(
    existing: Optional[EntitlementRecord],
    signal: SubscriptionSignal,
    now: Optional[datetime] = None,
) -> EntitlementRecord:
    """
    Compute the next entitlement for a subscription signal.

    Args:
        existing: Current record, or None if the user has none yet
        signal: Subscription state from the billing provider
        now: Reconciliation time (defaults to current UTC time)

    Returns:
        The next EntitlementRecord. When nothing changes this is
        ``existing`` itself.
    """
    now = now or utcnow()
    record = existing or EntitlementRecord.create(user_id=signal.user_id, now=now)
    status = normalize_status(signal.status)

    changes: Dict[str, Any] = {}
    if signal.customer_id:
        changes["billing_customer_id"] = signal.customer_id
    if signal.subscription_id:
        changes["billing_subscription_id"] = signal.subscription_id
    if signal.promotion_code:
        changes["promotion_code"] = signal.promotion_code

    if status in PRO_PROVIDER_STATUSES:
        changes["plan"] = Plan.PRO
        changes["status"] = EntitlementStatus.ACTIVE.value
        if not record.is_pro:
            changes["activated_at"] = now
            if record.license_key is None:
                changes["license_key"] = signal.license_key_if_new or generate_license_key(now)
    elif status in ENDED_PROVIDER_STATUSES:
        changes["plan"] = Plan.BASIC
        changes["status"] = EntitlementStatus.CANCELLED.value
        changes["billing_subscription_id"] = None
    else:
        if status not in _KNOWN_STATUSES:
            logger.warning(
                "Unrecognised subscription status %r for user %s, downgrading to basic",
                status,
                signal.user_id,
            )
        changes["plan"] = Plan.BASIC
        changes["status"] = status

    return record.merge(changes, now=now)
