"""
Test doubles and record builders shared across test modules.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional

from core.domain.events import DomainEvent, EventHandler
from core.domain.exceptions import SignatureError, UpstreamError
from core.domain.value_objects import Plan
from entitlements.domain.billing import (
    CheckoutSessionSnapshot,
    HostedSessionLink,
    SubscriptionSnapshot,
    WebhookEvent,
)
from entitlements.domain.entitlement import EntitlementRecord
from entitlements.ports.billing_provider import BillingProvider

VALID_SIGNATURE = "t=1,v1=valid"

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeBillingProvider(BillingProvider):
    """
    In-memory BillingProvider.

    Tests register subscriptions, checkout sessions and the next webhook
    event; ``fail`` makes every provider call raise UpstreamError.
    """

    def __init__(self):
        self.subscriptions: Dict[str, SubscriptionSnapshot] = {}
        self.sessions: Dict[str, CheckoutSessionSnapshot] = {}
        self.next_event: Optional[WebhookEvent] = None
        self.fail = False
        self.created_customers: List[str] = []
        self.checkout_calls: List[dict] = []
        self.portal_calls: List[dict] = []
        self.calls: List[str] = []

    def add_subscription(self, subscription_id: str, customer_id: str, status: str) -> SubscriptionSnapshot:
        snapshot = SubscriptionSnapshot(id=subscription_id, customer_id=customer_id, status=status)
        self.subscriptions[subscription_id] = snapshot
        return snapshot

    def add_session(self, session_id: str, **fields) -> CheckoutSessionSnapshot:
        defaults = {
            "payment_status": "paid",
            "mode": "subscription",
            "subscription_id": None,
            "customer_id": None,
            "user_id": None,
            "promotion_code": None,
        }
        defaults.update(fields)
        snapshot = CheckoutSessionSnapshot(id=session_id, **defaults)
        self.sessions[session_id] = snapshot
        return snapshot

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise UpstreamError(f"Stripe {operation} failed: connection timed out")

    async def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        self._call("retrieve_subscription")
        if subscription_id not in self.subscriptions:
            raise UpstreamError(f"No such subscription: {subscription_id}")
        return self.subscriptions[subscription_id]

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionSnapshot:
        self._call("retrieve_checkout_session")
        if session_id not in self.sessions:
            raise UpstreamError(f"No such checkout session: {session_id}")
        return self.sessions[session_id]

    async def list_subscriptions(self, customer_id: str, limit: int = 1) -> List[SubscriptionSnapshot]:
        self._call("list_subscriptions")
        matches = [s for s in self.subscriptions.values() if s.customer_id == customer_id]
        return matches[:limit]

    async def create_customer(self, user_id: str) -> str:
        self._call("create_customer")
        customer_id = f"cus_{len(self.created_customers) + 1}"
        self.created_customers.append(customer_id)
        return customer_id

    async def create_checkout_session(self, customer_id, user_id, success_url, cancel_url) -> HostedSessionLink:
        self._call("create_checkout_session")
        self.checkout_calls.append(
            {
                "customer_id": customer_id,
                "user_id": user_id,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        return HostedSessionLink(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    async def create_portal_session(self, customer_id, return_url) -> HostedSessionLink:
        self._call("create_portal_session")
        self.portal_calls.append({"customer_id": customer_id, "return_url": return_url})
        return HostedSessionLink(id="bps_1", url="https://billing.stripe.com/p/session/bps_1")

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        if signature != VALID_SIGNATURE:
            raise SignatureError("Webhook signature verification failed")
        if self.next_event is None:
            raise SignatureError("Invalid webhook payload")
        return self.next_event


def make_record(user_id: str = "user-1", **changes) -> EntitlementRecord:
    """Build an entitlement record with optional field overrides."""
    record = EntitlementRecord.create(user_id=user_id, now=FIXED_NOW)
    if changes:
        record = record.merge(changes, now=FIXED_NOW)
    return record


def make_pro_record(user_id: str = "user-1", **changes) -> EntitlementRecord:
    """Build an entitled Pro record."""
    fields = {
        "plan": Plan.PRO,
        "status": "active",
        "billing_customer_id": f"cus_{user_id}",
        "billing_subscription_id": f"sub_{user_id}",
        "license_key": f"dd_1714564800000_{user_id.replace('-', '')[:12]:0<12}",
        "activated_at": FIXED_NOW,
    }
    fields.update(changes)
    return make_record(user_id, **fields)


class RecordingEventHandler(EventHandler):
    """Event handler that keeps every event it receives."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    async def handle(self, event: DomainEvent) -> None:
        self.events.append(event)

    def types(self) -> List[str]:
        return [event.event_type for event in self.events]
