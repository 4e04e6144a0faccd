"""
Billing provider value objects.

Snapshots of the provider objects the service reads. Adapters convert
provider SDK objects into these so the application layer never touches
the SDK directly.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class SubscriptionSnapshot:
    """Subscription as reported by the billing provider."""

    id: str
    customer_id: Optional[str]
    status: str


@dataclass(frozen=True)
class CheckoutSessionSnapshot:
    """Completed or pending checkout session."""

    id: str
    payment_status: Optional[str]
    mode: Optional[str]
    subscription_id: Optional[str]
    customer_id: Optional[str]
    user_id: Optional[str]
    promotion_code: Optional[str] = None


@dataclass(frozen=True)
class InvoiceSnapshot:
    """Invoice event payload."""

    id: str
    customer_id: Optional[str]
    subscription_id: Optional[str]


@dataclass(frozen=True)
class HostedSessionLink:
    """Hosted checkout or portal session the client is redirected to."""

    id: str
    url: str


class WebhookEventKind(Enum):
    """Closed set of webhook event kinds the service reacts to."""

    CHECKOUT_COMPLETED = "checkout.session.completed"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    INVOICE_PAID = "invoice.paid"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, event_type: str) -> "WebhookEventKind":
        """
        Map a provider event type string to a kind.

        Args:
            event_type: Provider event type, e.g. ``invoice.paid``

        Returns:
            Matching WebhookEventKind, UNKNOWN for anything else
        """
        if event_type == "invoice.payment_succeeded":
            return cls.INVOICE_PAID
        try:
            return cls(event_type)
        except ValueError:
            return cls.UNKNOWN


WebhookPayload = Union[SubscriptionSnapshot, CheckoutSessionSnapshot, InvoiceSnapshot, None]


@dataclass(frozen=True)
class WebhookEvent:
    """Verified webhook event."""

    id: str
    type: str
    kind: WebhookEventKind
    payload: WebhookPayload = None
