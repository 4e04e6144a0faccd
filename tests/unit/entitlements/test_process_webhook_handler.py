"""
Unit tests for ProcessWebhookHandler.
"""
import pytest

from core.domain.exceptions import SignatureError
from core.domain.value_objects import Plan
from entitlements.application.commands.process_webhook import ProcessWebhookCommand
from entitlements.application.handlers.process_webhook_handler import ProcessWebhookHandler
from entitlements.domain.billing import (
    CheckoutSessionSnapshot,
    InvoiceSnapshot,
    SubscriptionSnapshot,
    WebhookEvent,
    WebhookEventKind,
)
from tests.factories import VALID_SIGNATURE, make_pro_record, make_record


def webhook(event_type, payload, event_id="evt_1"):
    return WebhookEvent(
        id=event_id, type=event_type, kind=WebhookEventKind.from_type(event_type), payload=payload
    )


def command(signature=VALID_SIGNATURE):
    return ProcessWebhookCommand(payload=b'{"id": "evt_1"}', signature=signature)


@pytest.fixture
def handler(entitlement_repository, webhook_event_repository, billing_provider, reconcile_handler):
    return ProcessWebhookHandler(
        entitlement_repository=entitlement_repository,
        webhook_event_repository=webhook_event_repository,
        billing_provider=billing_provider,
        reconcile_handler=reconcile_handler,
    )


def checkout_completed(**fields):
    defaults = {
        "id": "cs_1",
        "payment_status": "paid",
        "mode": "subscription",
        "subscription_id": "sub_1",
        "customer_id": "cus_1",
        "user_id": "user-1",
    }
    defaults.update(fields)
    return webhook("checkout.session.completed", CheckoutSessionSnapshot(**defaults))


class TestWebhookEventKind:
    """Tests for WebhookEventKind.from_type."""

    @pytest.mark.parametrize(
        "event_type,kind",
        [
            ("checkout.session.completed", WebhookEventKind.CHECKOUT_COMPLETED),
            ("customer.subscription.deleted", WebhookEventKind.SUBSCRIPTION_DELETED),
            ("invoice.paid", WebhookEventKind.INVOICE_PAID),
            ("invoice.payment_succeeded", WebhookEventKind.INVOICE_PAID),
            ("charge.refunded", WebhookEventKind.UNKNOWN),
        ],
    )
    def test_from_type(self, event_type, kind):
        assert WebhookEventKind.from_type(event_type) is kind


@pytest.mark.asyncio
class TestProcessWebhookHandler:
    """Tests for ProcessWebhookHandler."""

    async def test_bad_signature_raises_before_any_change(
        self, handler, billing_provider, webhook_event_repository
    ):
        billing_provider.next_event = checkout_completed()

        with pytest.raises(SignatureError):
            await handler.handle(command(signature="t=1,v1=forged"))

        assert billing_provider.calls == []
        assert await webhook_event_repository.is_processed("evt_1") is False

    async def test_checkout_completed_grants_pro(
        self, handler, billing_provider, entitlement_repository, webhook_event_repository
    ):
        """Test checkout completion activates the user."""
        billing_provider.add_subscription("sub_1", "cus_1", "active")
        billing_provider.next_event = checkout_completed(promotion_code="LAUNCH50")

        result = await handler.handle(command())

        assert result.received is True
        assert result.duplicate is False
        stored = await entitlement_repository.find_by_user_id("user-1")
        assert stored.plan is Plan.PRO
        assert stored.license_key is not None
        assert stored.promotion_code == "LAUNCH50"
        assert await webhook_event_repository.is_processed("evt_1") is True

    async def test_duplicate_delivery_is_skipped(self, handler, billing_provider, entitlement_repository):
        billing_provider.add_subscription("sub_1", "cus_1", "active")
        billing_provider.next_event = checkout_completed()
        await handler.handle(command())
        first = await entitlement_repository.find_by_user_id("user-1")
        calls = len(billing_provider.calls)

        result = await handler.handle(command())

        assert result.duplicate is True
        assert len(billing_provider.calls) == calls
        assert await entitlement_repository.find_by_user_id("user-1") == first

    async def test_checkout_with_inactive_subscription_does_nothing(
        self, handler, billing_provider, entitlement_repository
    ):
        billing_provider.add_subscription("sub_1", "cus_1", "incomplete")
        billing_provider.next_event = checkout_completed()

        await handler.handle(command())

        assert await entitlement_repository.find_by_user_id("user-1") is None

    async def test_checkout_without_user_id_is_acknowledged(
        self, handler, billing_provider, entitlement_repository
    ):
        billing_provider.next_event = checkout_completed(user_id=None)

        result = await handler.handle(command())

        assert result.received is True
        assert await entitlement_repository.list_all() == []

    async def test_subscription_deleted_downgrades(self, handler, billing_provider, entitlement_repository):
        pro = await entitlement_repository.save(make_pro_record())
        billing_provider.next_event = webhook(
            "customer.subscription.deleted",
            SubscriptionSnapshot(id=pro.billing_subscription_id, customer_id=pro.billing_customer_id, status="canceled"),
        )

        await handler.handle(command())

        stored = await entitlement_repository.find_by_user_id(pro.user_id)
        assert stored.plan is Plan.BASIC
        assert stored.status == "cancelled"
        assert stored.billing_subscription_id is None
        assert stored.license_key == pro.license_key

    async def test_subscription_updated_for_unknown_customer(
        self, handler, billing_provider, webhook_event_repository
    ):
        billing_provider.next_event = webhook(
            "customer.subscription.updated",
            SubscriptionSnapshot(id="sub_9", customer_id="cus_unknown", status="active"),
        )

        result = await handler.handle(command())

        assert result.received is True
        assert await webhook_event_repository.is_processed("evt_1") is True

    async def test_invoice_paid_restores_pro(self, handler, billing_provider, entitlement_repository):
        """Test a paid invoice re-activates a lapsed user with the same key."""
        await entitlement_repository.save(
            make_record(billing_customer_id="cus_1", status="past_due", license_key="dd_1_kept")
        )
        billing_provider.next_event = webhook(
            "invoice.payment_succeeded",
            InvoiceSnapshot(id="in_1", customer_id="cus_1", subscription_id="sub_1"),
        )

        await handler.handle(command())

        stored = await entitlement_repository.find_by_user_id("user-1")
        assert stored.plan is Plan.PRO
        assert stored.billing_subscription_id == "sub_1"
        assert stored.license_key == "dd_1_kept"

    async def test_invoice_without_subscription_is_ignored(
        self, handler, billing_provider, entitlement_repository
    ):
        record = await entitlement_repository.save(make_record(billing_customer_id="cus_1"))
        billing_provider.next_event = webhook(
            "invoice.paid", InvoiceSnapshot(id="in_1", customer_id="cus_1", subscription_id=None)
        )

        await handler.handle(command())

        assert await entitlement_repository.find_by_user_id("user-1") == record

    async def test_unknown_event_is_acknowledged(self, handler, billing_provider, webhook_event_repository):
        billing_provider.next_event = webhook("charge.refunded", None)

        result = await handler.handle(command())

        assert result.received is True
        assert await webhook_event_repository.is_processed("evt_1") is True

    async def test_handler_failure_is_acknowledged_but_not_marked(
        self, handler, billing_provider, webhook_event_repository, entitlement_repository
    ):
        """Test a failing handler still acknowledges and allows a retry."""
        billing_provider.next_event = checkout_completed()
        billing_provider.fail = True

        result = await handler.handle(command())

        assert result.received is True
        assert result.duplicate is False
        assert await webhook_event_repository.is_processed("evt_1") is False

        billing_provider.fail = False
        billing_provider.add_subscription("sub_1", "cus_1", "active")
        await handler.handle(command())

        assert (await entitlement_repository.find_by_user_id("user-1")).plan is Plan.PRO
