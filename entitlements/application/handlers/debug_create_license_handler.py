"""
DebugCreateLicenseHandler.

Development-only: grants a license from a customer's most recent
subscription, for when both the webhook and the checkout return were lost.
"""
import logging
from typing import Optional

from core.domain.exceptions import NotFoundError, ValidationError
from core.domain.value_objects import PRO_PROVIDER_STATUSES
from entitlements.application.commands.debug_create_license import DebugCreateLicenseCommand
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.application.dto.entitlement_dto import LicenseCreationResultDTO
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class DebugCreateLicenseHandler:
    """Handler for DebugCreateLicenseCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        billing_provider: BillingProvider,
        reconcile_handler: Optional[ReconcileSubscriptionHandler] = None,
    ):
        self.entitlement_repository = entitlement_repository
        self.billing_provider = billing_provider
        self.reconcile_handler = reconcile_handler or ReconcileSubscriptionHandler(
            entitlement_repository
        )

    async def handle(self, command: DebugCreateLicenseCommand) -> LicenseCreationResultDTO:
        """
        Handle debug create license command.

        Args:
            command: DebugCreateLicenseCommand

        Returns:
            LicenseCreationResultDTO

        Raises:
            ValidationError: If inputs are missing or the subscription is not active
            NotFoundError: If the customer has no subscription
        """
        if not command.user_id or not command.customer_id:
            raise ValidationError("Missing userId or customerId")

        subscriptions = await self.billing_provider.list_subscriptions(command.customer_id, limit=1)
        if not subscriptions:
            raise NotFoundError("No subscription found for this customer", code="SUBSCRIPTION_NOT_FOUND")

        subscription = subscriptions[0]
        if subscription.status not in PRO_PROVIDER_STATUSES:
            raise ValidationError(f"Subscription status is {subscription.status}, not active")

        record = await self.reconcile_handler.handle(
            ReconcileSubscriptionCommand(
                user_id=command.user_id,
                status=subscription.status,
                customer_id=command.customer_id,
                subscription_id=subscription.id,
                source="debug",
            )
        )
        logger.info(
            "License manually created for user %s from customer %s",
            command.user_id,
            command.customer_id,
        )
        return LicenseCreationResultDTO(
            success=True,
            license_key=record.license_key,
            message="License created successfully",
        )
