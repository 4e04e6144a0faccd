"""
Billing provider port (interface).

Every method raises ``UpstreamError`` when the provider call fails or
times out, except ``construct_webhook_event`` which raises
``SignatureError`` for payloads that fail verification.
"""
from abc import ABC, abstractmethod
from typing import List

from entitlements.domain.billing import (
    CheckoutSessionSnapshot,
    HostedSessionLink,
    SubscriptionSnapshot,
    WebhookEvent,
)


class BillingProvider(ABC):
    """Abstract billing provider."""

    @abstractmethod
    async def retrieve_subscription(self, subscription_id: str) -> SubscriptionSnapshot:
        """
        Fetch a subscription.

        Args:
            subscription_id: Provider subscription id

        Returns:
            SubscriptionSnapshot with the live status
        """
        pass

    @abstractmethod
    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSessionSnapshot:
        """
        Fetch a checkout session.

        Args:
            session_id: Provider checkout session id

        Returns:
            CheckoutSessionSnapshot
        """
        pass

    @abstractmethod
    async def list_subscriptions(self, customer_id: str, limit: int = 1) -> List[SubscriptionSnapshot]:
        """
        List a customer's subscriptions, most recent first.

        Args:
            customer_id: Provider customer id
            limit: Maximum number of subscriptions

        Returns:
            List of SubscriptionSnapshot
        """
        pass

    @abstractmethod
    async def create_customer(self, user_id: str) -> str:
        """
        Create a customer tagged with the user id.

        Args:
            user_id: Extension user identifier

        Returns:
            New provider customer id
        """
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        customer_id: str,
        user_id: str,
        success_url: str,
        cancel_url: str,
    ) -> HostedSessionLink:
        """
        Create a subscription-mode checkout session.

        Args:
            customer_id: Provider customer id
            user_id: Extension user identifier, attached as client reference
            success_url: Redirect after payment
            cancel_url: Redirect on cancel

        Returns:
            HostedSessionLink to redirect the user to
        """
        pass

    @abstractmethod
    async def create_portal_session(self, customer_id: str, return_url: str) -> HostedSessionLink:
        """
        Create a customer portal session.

        Args:
            customer_id: Provider customer id
            return_url: Where the portal sends the user back to

        Returns:
            HostedSessionLink to redirect the user to
        """
        pass

    @abstractmethod
    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify and parse a webhook payload.

        Args:
            payload: Raw request body
            signature: Signature header value

        Returns:
            Verified WebhookEvent

        Raises:
            SignatureError: If verification or parsing fails
        """
        pass
