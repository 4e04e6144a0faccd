"""
Unit tests for SweepSubscriptionsHandler and DebugCreateLicenseHandler.
"""
import pytest

from core.domain.exceptions import NotFoundError, ValidationError
from core.domain.value_objects import Plan
from entitlements.application.commands.debug_create_license import DebugCreateLicenseCommand
from entitlements.application.commands.sweep_subscriptions import SweepSubscriptionsCommand
from entitlements.application.handlers.debug_create_license_handler import (
    DebugCreateLicenseHandler,
)
from entitlements.application.handlers.sweep_subscriptions_handler import (
    SweepSubscriptionsHandler,
)
from tests.factories import make_pro_record, make_record


@pytest.fixture
def sweep_handler(entitlement_repository, billing_provider, reconcile_handler):
    return SweepSubscriptionsHandler(
        entitlement_repository=entitlement_repository,
        billing_provider=billing_provider,
        reconcile_handler=reconcile_handler,
    )


@pytest.mark.asyncio
class TestSweepSubscriptionsHandler:
    """Tests for SweepSubscriptionsHandler."""

    async def test_sweep_applies_changes(self, sweep_handler, entitlement_repository, billing_provider):
        """Test the sweep downgrades cancelled and keeps active records."""
        keep = await entitlement_repository.save(make_pro_record("user-a"))
        drop = await entitlement_repository.save(make_pro_record("user-b"))
        await entitlement_repository.save(make_record("user-c"))
        billing_provider.add_subscription(keep.billing_subscription_id, keep.billing_customer_id, "active")
        billing_provider.add_subscription(drop.billing_subscription_id, drop.billing_customer_id, "canceled")

        report = await sweep_handler.handle(SweepSubscriptionsCommand())

        assert report.checked == 2
        assert report.changed == 1
        assert report.failed == 0
        assert report.changed_user_ids == ["user-b"]
        assert (await entitlement_repository.find_by_user_id("user-b")).plan is Plan.BASIC
        assert await entitlement_repository.find_by_user_id("user-a") == keep

    async def test_dry_run_changes_nothing(self, sweep_handler, entitlement_repository, billing_provider):
        pro = await entitlement_repository.save(make_pro_record())
        billing_provider.add_subscription(pro.billing_subscription_id, pro.billing_customer_id, "unpaid")

        report = await sweep_handler.handle(SweepSubscriptionsCommand(dry_run=True))

        assert report.changed_user_ids == [pro.user_id]
        assert await entitlement_repository.find_by_user_id(pro.user_id) == pro

    async def test_provider_failure_is_counted_and_sweep_continues(
        self, sweep_handler, entitlement_repository, billing_provider
    ):
        await entitlement_repository.save(make_pro_record("user-a"))
        good = await entitlement_repository.save(make_pro_record("user-b"))
        billing_provider.add_subscription(good.billing_subscription_id, good.billing_customer_id, "canceled")

        report = await sweep_handler.handle(SweepSubscriptionsCommand())

        assert report.checked == 2
        assert report.failed == 1
        assert report.changed_user_ids == ["user-b"]

    async def test_store_conflict_is_counted_and_sweep_continues(
        self, sweep_handler, entitlement_repository, billing_provider
    ):
        """Test a record the store rejects does not abort the remaining records."""
        clash = await entitlement_repository.save(make_pro_record("user-a"))
        good = await entitlement_repository.save(make_pro_record("user-b"))
        billing_provider.add_subscription(clash.billing_subscription_id, good.billing_customer_id, "active")
        billing_provider.add_subscription(good.billing_subscription_id, good.billing_customer_id, "canceled")

        report = await sweep_handler.handle(SweepSubscriptionsCommand())

        assert report.checked == 2
        assert report.failed == 1
        assert report.changed_user_ids == ["user-b"]
        assert await entitlement_repository.find_by_user_id("user-a") == clash

    async def test_single_user(self, sweep_handler, entitlement_repository, billing_provider):
        await entitlement_repository.save(make_pro_record("user-a"))
        other = await entitlement_repository.save(make_pro_record("user-b"))
        billing_provider.add_subscription(other.billing_subscription_id, other.billing_customer_id, "active")

        report = await sweep_handler.handle(SweepSubscriptionsCommand(user_id="user-b"))

        assert report.checked == 1
        assert report.failed == 0

    async def test_unknown_single_user_checks_nothing(self, sweep_handler):
        report = await sweep_handler.handle(SweepSubscriptionsCommand(user_id="ghost"))

        assert report.checked == 0


@pytest.mark.asyncio
class TestDebugCreateLicenseHandler:
    """Tests for DebugCreateLicenseHandler."""

    async def test_grants_from_latest_subscription(
        self, entitlement_repository, billing_provider, reconcile_handler
    ):
        billing_provider.add_subscription("sub_1", "cus_1", "active")
        handler = DebugCreateLicenseHandler(entitlement_repository, billing_provider, reconcile_handler)

        result = await handler.handle(DebugCreateLicenseCommand(user_id="user-1", customer_id="cus_1"))

        assert result.success is True
        stored = await entitlement_repository.find_by_user_id("user-1")
        assert stored.license_key == result.license_key
        assert stored.billing_subscription_id == "sub_1"

    async def test_customer_without_subscription(self, entitlement_repository, billing_provider):
        handler = DebugCreateLicenseHandler(entitlement_repository, billing_provider)

        with pytest.raises(NotFoundError) as exc_info:
            await handler.handle(DebugCreateLicenseCommand(user_id="user-1", customer_id="cus_none"))

        assert exc_info.value.code == "SUBSCRIPTION_NOT_FOUND"

    async def test_inactive_subscription(self, entitlement_repository, billing_provider):
        billing_provider.add_subscription("sub_1", "cus_1", "past_due")
        handler = DebugCreateLicenseHandler(entitlement_repository, billing_provider)

        with pytest.raises(ValidationError, match="past_due"):
            await handler.handle(DebugCreateLicenseCommand(user_id="user-1", customer_id="cus_1"))
