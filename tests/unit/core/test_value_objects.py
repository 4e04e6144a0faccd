"""
Unit tests for core value objects.
"""
from core.domain.value_objects import (
    ENDED_PROVIDER_STATUSES,
    PRO_PROVIDER_STATUSES,
    EntitlementStatus,
    Plan,
    ProviderSubscriptionStatus,
)


class TestPlan:
    """Tests for Plan value object."""

    def test_values(self):
        assert Plan("basic") is Plan.BASIC
        assert str(Plan.PRO) == "pro"


class TestStatuses:
    """Tests for status groupings."""

    def test_pro_statuses(self):
        assert PRO_PROVIDER_STATUSES == {"active", "trialing"}

    def test_ended_statuses(self):
        assert ENDED_PROVIDER_STATUSES == {"canceled", "unpaid"}

    def test_provider_and_entitlement_spelling_differ(self):
        """The provider spells canceled with one l; stored status uses two."""
        assert ProviderSubscriptionStatus.CANCELED.value == "canceled"
        assert EntitlementStatus.CANCELLED.value == "cancelled"
