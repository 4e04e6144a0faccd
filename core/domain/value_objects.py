"""
Value objects for the domain.

Value objects are immutable and compared by value. Plans and statuses
are modelled as enums; provider statuses outside the known set are
carried as raw strings on the entitlement record.
"""
from enum import Enum


class Plan(Enum):
    """Entitlement plan value object."""

    BASIC = "basic"
    PRO = "pro"

    def __str__(self) -> str:
        """Return plan as string."""
        return self.value


class EntitlementStatus(Enum):
    """Known entitlement statuses."""

    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    UNPAID = "unpaid"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


class ProviderSubscriptionStatus(Enum):
    """Subscription statuses reported by the billing provider that drive plan changes."""

    ACTIVE = "active"
    TRIALING = "trialing"
    CANCELED = "canceled"
    UNPAID = "unpaid"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


# Provider statuses that grant Pro
PRO_PROVIDER_STATUSES = frozenset(
    {ProviderSubscriptionStatus.ACTIVE.value, ProviderSubscriptionStatus.TRIALING.value}
)

# Provider statuses that end the subscription
ENDED_PROVIDER_STATUSES = frozenset(
    {ProviderSubscriptionStatus.CANCELED.value, ProviderSubscriptionStatus.UNPAID.value}
)

# Entitlement statuses allowed while on the Pro plan
PRO_ENTITLEMENT_STATUSES = frozenset(
    {EntitlementStatus.ACTIVE.value, EntitlementStatus.TRIALING.value}
)

# Entitlement statuses that revoke access even on the Pro plan
REVOKED_ENTITLEMENT_STATUSES = frozenset(
    {EntitlementStatus.CANCELLED.value, EntitlementStatus.EXPIRED.value}
)
