"""
ProcessWebhookHandler.

Verifies a billing provider webhook and dispatches it by event kind to
the reconciler. Signature failures are raised before any state is
touched. Once the signature is verified, handler failures are logged and
the event is still acknowledged so the provider does not retry forever;
only successfully handled events are recorded as processed.
"""
import logging
from typing import Awaitable, Callable, Dict, Optional

from core.domain.value_objects import PRO_PROVIDER_STATUSES, EntitlementStatus
from core.metrics import webhook_events_total
from entitlements.application.commands.process_webhook import ProcessWebhookCommand
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.application.dto.entitlement_dto import WebhookResultDTO
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.domain.billing import (
    CheckoutSessionSnapshot,
    InvoiceSnapshot,
    SubscriptionSnapshot,
    WebhookEvent,
    WebhookEventKind,
)
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository
from entitlements.ports.webhook_event_repository import WebhookEventRepository

logger = logging.getLogger(__name__)


class ProcessWebhookHandler:
    """Handler for ProcessWebhookCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        webhook_event_repository: WebhookEventRepository,
        billing_provider: BillingProvider,
        reconcile_handler: Optional[ReconcileSubscriptionHandler] = None,
    ):
        """Initialize handler with repositories and billing provider."""
        self.entitlement_repository = entitlement_repository
        self.webhook_event_repository = webhook_event_repository
        self.billing_provider = billing_provider
        self.reconcile_handler = reconcile_handler or ReconcileSubscriptionHandler(
            entitlement_repository
        )
        self._dispatch: Dict[WebhookEventKind, Callable[[WebhookEvent], Awaitable[None]]] = {
            WebhookEventKind.CHECKOUT_COMPLETED: self._handle_checkout_completed,
            WebhookEventKind.SUBSCRIPTION_UPDATED: self._handle_subscription_change,
            WebhookEventKind.SUBSCRIPTION_DELETED: self._handle_subscription_change,
            WebhookEventKind.INVOICE_PAID: self._handle_invoice_paid,
            WebhookEventKind.INVOICE_PAYMENT_FAILED: self._handle_payment_failed,
        }

    async def handle(self, command: ProcessWebhookCommand) -> WebhookResultDTO:
        """
        Handle process webhook command.

        Args:
            command: ProcessWebhookCommand with raw body and signature

        Returns:
            WebhookResultDTO acknowledging receipt

        Raises:
            SignatureError: If the payload fails verification
        """
        event = self.billing_provider.construct_webhook_event(command.payload, command.signature)

        logger.info(
            "Received webhook event %s (%s)",
            event.id,
            event.type,
            extra={"event_id": event.id, "event_type": event.type},
        )

        if await self.webhook_event_repository.is_processed(event.id):
            webhook_events_total.labels(event_type=event.type, result="duplicate").inc()
            logger.info("Webhook event %s already processed, skipping", event.id)
            return WebhookResultDTO(received=True, duplicate=True)

        handler = self._dispatch.get(event.kind, self._handle_unknown)
        try:
            await handler(event)
        except Exception:
            webhook_events_total.labels(event_type=event.type, result="error").inc()
            logger.exception(
                "Webhook handler failed for event %s (%s)",
                event.id,
                event.type,
                extra={"event_id": event.id, "event_type": event.type},
            )
            return WebhookResultDTO(received=True)

        await self.webhook_event_repository.mark_processed(event.id, event.type)
        webhook_events_total.labels(event_type=event.type, result="handled").inc()
        return WebhookResultDTO(received=True)

    async def _handle_checkout_completed(self, event: WebhookEvent) -> None:
        session: CheckoutSessionSnapshot = event.payload
        if not session.user_id:
            logger.error("No userId found in checkout session %s", session.id)
            return
        if session.mode != "subscription":
            logger.info("Checkout session %s is not a subscription, skipping", session.id)
            return
        if not session.subscription_id:
            logger.warning("Checkout session %s carries no subscription", session.id)
            return

        subscription = await self.billing_provider.retrieve_subscription(session.subscription_id)
        if subscription.status not in PRO_PROVIDER_STATUSES:
            logger.info(
                "Subscription %s status is %s, not activating",
                subscription.id,
                subscription.status,
            )
            return

        await self.reconcile_handler.handle(
            ReconcileSubscriptionCommand(
                user_id=session.user_id,
                status=subscription.status,
                customer_id=session.customer_id or subscription.customer_id,
                subscription_id=subscription.id,
                promotion_code=session.promotion_code,
                source="webhook",
            )
        )

    async def _handle_subscription_change(self, event: WebhookEvent) -> None:
        subscription: SubscriptionSnapshot = event.payload
        record = await self._find_by_customer(subscription.customer_id)
        if record is None:
            return

        await self.reconcile_handler.handle(
            ReconcileSubscriptionCommand(
                user_id=record.user_id,
                status=subscription.status,
                customer_id=subscription.customer_id,
                subscription_id=subscription.id,
                source="webhook",
            )
        )

    async def _handle_invoice_paid(self, event: WebhookEvent) -> None:
        invoice: InvoiceSnapshot = event.payload
        if not invoice.subscription_id:
            logger.debug("Invoice %s is not for a subscription, skipping", invoice.id)
            return
        record = await self._find_by_customer(invoice.customer_id)
        if record is None:
            return

        await self.reconcile_handler.handle(
            ReconcileSubscriptionCommand(
                user_id=record.user_id,
                status=EntitlementStatus.ACTIVE.value,
                customer_id=invoice.customer_id,
                subscription_id=invoice.subscription_id,
                source="webhook",
            )
        )

    async def _handle_payment_failed(self, event: WebhookEvent) -> None:
        invoice: InvoiceSnapshot = event.payload
        logger.warning(
            "Payment failed for invoice %s (customer %s)",
            invoice.id if invoice else None,
            invoice.customer_id if invoice else None,
        )

    async def _handle_unknown(self, event: WebhookEvent) -> None:
        logger.info("Unhandled webhook event type: %s", event.type)

    async def _find_by_customer(self, customer_id: Optional[str]):
        if not customer_id:
            logger.info("Webhook payload carries no customer id")
            return None
        record = await self.entitlement_repository.find_by_customer_id(customer_id)
        if record is None:
            logger.info("No user found for customer: %s", customer_id)
        return record
