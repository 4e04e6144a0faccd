"""
Entitlement domain entity.

One record per extension user: plan, billing identifiers, status,
license key and timestamps. The record is immutable; every change
produces a new instance through ``merge``.
"""
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from core.domain.value_objects import (
    PRO_ENTITLEMENT_STATUSES,
    REVOKED_ENTITLEMENT_STATUSES,
    EntitlementStatus,
    Plan,
)

# Fields that carry domain state; timestamps are bookkeeping
STATE_FIELDS = (
    "plan",
    "status",
    "billing_customer_id",
    "billing_subscription_id",
    "license_key",
    "promotion_code",
    "activated_at",
)

_IMMUTABLE_FIELDS = ("user_id", "created_at", "updated_at")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EntitlementRecord:
    """
    Entitlement domain entity.

    ``status`` is a plain string: the known values live in
    ``EntitlementStatus`` but unknown provider statuses are stored as-is.
    """

    user_id: str
    plan: Plan
    status: str
    billing_customer_id: Optional[str]
    billing_subscription_id: Optional[str]
    license_key: Optional[str]
    promotion_code: Optional[str]
    activated_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate entitlement entity."""
        if not self.user_id or not str(self.user_id).strip():
            raise ValueError("User ID is required")
        if not isinstance(self.plan, Plan):
            raise ValueError(f"Invalid plan: {self.plan!r}")
        if not self.status:
            raise ValueError("Status is required")
        if self.plan is Plan.PRO and self.status not in PRO_ENTITLEMENT_STATUSES:
            raise ValueError(f"Pro plan cannot have status {self.status!r}")

    @classmethod
    def create(
        cls,
        user_id: str,
        billing_customer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "EntitlementRecord":
        """
        Create a new Basic entitlement.

        Args:
            user_id: Extension user identifier
            billing_customer_id: Optional billing provider customer id
            now: Creation time (defaults to current UTC time)

        Returns:
            EntitlementRecord on the Basic plan
        """
        now = now or utcnow()
        return cls(
            user_id=user_id,
            plan=Plan.BASIC,
            status=EntitlementStatus.ACTIVE.value,
            billing_customer_id=billing_customer_id,
            billing_subscription_id=None,
            license_key=None,
            promotion_code=None,
            activated_at=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pro(self) -> bool:
        """True when the record is on the Pro plan."""
        return self.plan is Plan.PRO

    def state(self) -> dict:
        """Domain state without bookkeeping timestamps."""
        return {name: getattr(self, name) for name in STATE_FIELDS}

    def merge(self, changes: Mapping[str, Any], now: Optional[datetime] = None) -> "EntitlementRecord":
        """
        Apply a partial update.

        Keys missing from ``changes`` keep their current value; an explicit
        ``None`` clears the field. When nothing changes the same instance is
        returned, so ``updated_at`` only moves on real changes.

        Args:
            changes: Field name to new value
            now: Update time (defaults to current UTC time)

        Returns:
            Updated EntitlementRecord, or self if nothing changed

        Raises:
            ValueError: On unknown or immutable fields
        """
        known = {f.name for f in fields(self)}
        for name in changes:
            if name not in known or name in _IMMUTABLE_FIELDS:
                raise ValueError(f"Field cannot be updated: {name}")

        normalized = dict(changes)
        if "plan" in normalized and not isinstance(normalized["plan"], Plan):
            normalized["plan"] = Plan(normalized["plan"])

        if all(getattr(self, name) == value for name, value in normalized.items()):
            return self

        return replace(self, **normalized, updated_at=now or utcnow())


def is_entitled(record: Optional[EntitlementRecord]) -> bool:
    """
    Check whether a record grants Pro features.

    Args:
        record: Entitlement record or None

    Returns:
        True if on the Pro plan and not cancelled or expired
    """
    if record is None:
        return False
    if record.plan is not Plan.PRO:
        return False
    return record.status not in REVOKED_ENTITLEMENT_STATUSES
