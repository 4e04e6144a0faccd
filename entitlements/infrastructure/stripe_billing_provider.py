"""
Stripe implementation of the BillingProvider port.

Calls go through the ``stripe`` SDK with a bounded HTTP timeout and no
automatic retries. SDK errors surface as ``UpstreamError``; webhook
verification failures surface as ``SignatureError``.
"""
import logging
import time
from typing import Any, Callable, List, Optional

import stripe
from asgiref.sync import sync_to_async
from django.conf import settings

from core.domain.exceptions import SignatureError, UpstreamError
from core.metrics import billing_provider_errors_total, billing_provider_requests_seconds
from entitlements.domain.billing import (
    CheckoutSessionSnapshot,
    HostedSessionLink,
    InvoiceSnapshot,
    SubscriptionSnapshot,
    WebhookEvent,
    WebhookEventKind,
)
from entitlements.ports.billing_provider import BillingProvider

logger = logging.getLogger(__name__)


def _value(obj: Any, key: str) -> Any:
    """Read a field from a Stripe object, a plain dict, or None."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    try:
        return obj[key]
    except (KeyError, TypeError, AttributeError):
        return getattr(obj, key, None)


def _id(obj: Any) -> Optional[str]:
    """Return the id of an expandable field, which may be an id string or an object."""
    if obj is None or isinstance(obj, str):
        return obj
    return _value(obj, "id")


def _promotion_code(session: Any) -> Optional[str]:
    """
    Extract the promotion code a checkout session was paid with.

    Returns the human-readable code when the promotion code object is
    expanded, otherwise its id.
    """
    amount_discount = _value(_value(session, "total_details"), "amount_discount") or 0
    if amount_discount <= 0:
        return None

    discounts = _value(session, "discounts") or []
    candidates = [_value(discount, "promotion_code") for discount in discounts]
    candidates.append(_value(_value(session, "discount"), "promotion_code"))
    for promotion in candidates:
        if promotion is None:
            continue
        if isinstance(promotion, str):
            return promotion
        return _value(promotion, "code") or _value(promotion, "id")
    return None


def subscription_snapshot(subscription: Any) -> SubscriptionSnapshot:
    """Convert a Stripe subscription to a SubscriptionSnapshot."""
    return SubscriptionSnapshot(
        id=_value(subscription, "id"),
        customer_id=_id(_value(subscription, "customer")),
        status=_value(subscription, "status") or "",
    )


def checkout_session_snapshot(session: Any) -> CheckoutSessionSnapshot:
    """Convert a Stripe checkout session to a CheckoutSessionSnapshot."""
    metadata = _value(session, "metadata")
    return CheckoutSessionSnapshot(
        id=_value(session, "id"),
        payment_status=_value(session, "payment_status"),
        mode=_value(session, "mode"),
        subscription_id=_id(_value(session, "subscription")),
        customer_id=_id(_value(session, "customer")),
        user_id=_value(metadata, "userId") or _value(session, "client_reference_id"),
        promotion_code=_promotion_code(session),
    )


def invoice_snapshot(invoice: Any) -> InvoiceSnapshot:
    """
    Convert a Stripe invoice to an InvoiceSnapshot.

    Newer API versions moved the subscription reference under
    ``parent.subscription_details``.
    """
    subscription = _value(invoice, "subscription")
    if subscription is None:
        details = _value(_value(invoice, "parent"), "subscription_details")
        subscription = _value(details, "subscription")
    return InvoiceSnapshot(
        id=_value(invoice, "id"),
        customer_id=_id(_value(invoice, "customer")),
        subscription_id=_id(subscription),
    )


_PAYLOAD_CONVERTERS = {
    WebhookEventKind.CHECKOUT_COMPLETED: checkout_session_snapshot,
    WebhookEventKind.SUBSCRIPTION_UPDATED: subscription_snapshot,
    WebhookEventKind.SUBSCRIPTION_DELETED: subscription_snapshot,
    WebhookEventKind.INVOICE_PAID: invoice_snapshot,
    WebhookEventKind.INVOICE_PAYMENT_FAILED: invoice_snapshot,
}


class StripeBillingProvider(BillingProvider):
    """
    Stripe-backed BillingProvider.

    Configures the module-level ``stripe`` client on construction.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        price_id: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Stripe secret key (defaults to settings.STRIPE_SECRET_KEY)
            price_id: Price used for checkout sessions (defaults to settings.STRIPE_PRICE_ID)
            webhook_secret: Endpoint signing secret (defaults to settings.STRIPE_WEBHOOK_SECRET)
            timeout: HTTP timeout in seconds (defaults to settings.BILLING_PROVIDER_TIMEOUT_SECONDS)
        """
        self.price_id = price_id or settings.STRIPE_PRICE_ID
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET
        self.timeout = timeout or settings.BILLING_PROVIDER_TIMEOUT_SECONDS

        stripe.api_key = api_key or settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = 0
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

    def _call(self, operation: str, func: Callable[..., Any], **params) -> Any:
        """
        Invoke a Stripe SDK function, recording duration and mapping errors.

        Args:
            operation: Metric label for the call
            func: Stripe SDK callable
            **params: Keyword arguments for the call

        Returns:
            The SDK result

        Raises:
            UpstreamError: If the SDK raises
        """
        started = time.perf_counter()
        try:
            return func(**params)
        except stripe.StripeError as e:
            billing_provider_errors_total.labels(operation=operation).inc()
            logger.error(
                "Stripe %s failed: %s",
                operation,
                e,
                extra={"operation": operation, "stripe_code": getattr(e, "code", None)},
            )
            raise UpstreamError(f"Stripe {operation} failed: {e.user_message or e}") from e
        finally:
            billing_provider_requests_seconds.labels(operation=operation).observe(
                time.perf_counter() - started
            )

    @sync_to_async(thread_sensitive=False)
    def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        subscription = self._call("retrieve_subscription", stripe.Subscription.retrieve, id=subscription_id)
        return subscription_snapshot(subscription)

    @sync_to_async(thread_sensitive=False)
    def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionSnapshot:
        session = self._call(
            "retrieve_checkout_session",
            stripe.checkout.Session.retrieve,
            id=session_id,
            expand=["discounts.promotion_code"],
        )
        return checkout_session_snapshot(session)

    @sync_to_async(thread_sensitive=False)
    def list_subscriptions(self, customer_id: str, limit: int = 1) -> List[SubscriptionSnapshot]:
        result = self._call("list_subscriptions", stripe.Subscription.list, customer=customer_id, limit=limit)
        return [subscription_snapshot(subscription) for subscription in _value(result, "data") or []]

    @sync_to_async(thread_sensitive=False)
    def create_customer(self, user_id: str) -> str:
        customer = self._call("create_customer", stripe.Customer.create, metadata={"userId": user_id})
        logger.info("Created Stripe customer %s for user %s", customer.id, user_id)
        return customer.id

    @sync_to_async(thread_sensitive=False)
    def create_checkout_session(
        self,
        customer_id: str,
        user_id: str,
        success_url: str,
        cancel_url: str,
    ) -> HostedSessionLink:
        session = self._call(
            "create_checkout_session",
            stripe.checkout.Session.create,
            customer=customer_id,
            payment_method_types=["card"],
            line_items=[{"price": self.price_id, "quantity": 1}],
            mode="subscription",
            allow_promotion_codes=True,
            success_url=success_url,
            cancel_url=cancel_url,
            client_reference_id=user_id,
            metadata={"userId": user_id},
        )
        return HostedSessionLink(id=session.id, url=session.url)

    @sync_to_async(thread_sensitive=False)
    def create_portal_session(self, customer_id: str, return_url: str) -> HostedSessionLink:
        session = self._call(
            "create_portal_session",
            stripe.billing_portal.Session.create,
            customer=customer_id,
            return_url=return_url,
        )
        return HostedSessionLink(id=session.id, url=session.url)

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse a webhook payload.

        Args:
            payload: Raw request body
            signature: ``Stripe-Signature`` header value

        Returns:
            Verified WebhookEvent

        Raises:
            SignatureError: If the signature does not match or the payload is not valid JSON
        """
        if not self.webhook_secret:
            raise SignatureError("Webhook secret not configured")
        if not signature:
            raise SignatureError("Missing Stripe-Signature header")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise SignatureError(f"Webhook signature verification failed: {e}") from e
        except ValueError as e:
            raise SignatureError(f"Invalid webhook payload: {e}") from e

        event_type = _value(event, "type")
        kind = WebhookEventKind.from_type(event_type)
        converter = _PAYLOAD_CONVERTERS.get(kind)
        obj = _value(_value(event, "data"), "object")
        return WebhookEvent(
            id=_value(event, "id"),
            type=event_type,
            kind=kind,
            payload=converter(obj) if converter else None,
        )
