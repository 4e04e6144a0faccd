"""
AutoCreateLicenseHandler.

Fallback path when the checkout webhook was missed or delayed: the client
returns from checkout with the session id and asks for its license.
"""
import logging
from typing import Optional

from core.domain.exceptions import ValidationError
from core.domain.value_objects import PRO_PROVIDER_STATUSES
from entitlements.application.commands.auto_create_license import AutoCreateLicenseCommand
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.application.dto.entitlement_dto import LicenseCreationResultDTO
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.domain.entitlement import is_entitled
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class AutoCreateLicenseHandler:
    """Handler for AutoCreateLicenseCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        billing_provider: BillingProvider,
        reconcile_handler: Optional[ReconcileSubscriptionHandler] = None,
    ):
        """Initialize handler with repository and billing provider."""
        self.entitlement_repository = entitlement_repository
        self.billing_provider = billing_provider
        self.reconcile_handler = reconcile_handler or ReconcileSubscriptionHandler(
            entitlement_repository
        )

    async def handle(self, command: AutoCreateLicenseCommand) -> LicenseCreationResultDTO:
        """
        Handle auto-create license command.

        Args:
            command: AutoCreateLicenseCommand

        Returns:
            LicenseCreationResultDTO with the user's license key

        Raises:
            ValidationError: If inputs are missing, the session is unpaid, not a
                subscription or belongs to another user, the subscription is not
                active, or the billing customer is already linked to another user
            UpstreamError: If the billing provider call fails
        """
        if not command.session_id or not command.user_id:
            raise ValidationError("Missing sessionId or userId")

        existing = await self.entitlement_repository.find_by_user_id(command.user_id)
        if is_entitled(existing) and existing.license_key:
            return LicenseCreationResultDTO(
                success=True,
                license_key=existing.license_key,
                message="License already exists",
            )

        session = await self.billing_provider.retrieve_checkout_session(command.session_id)
        if session.user_id and session.user_id != command.user_id:
            logger.warning(
                "Checkout session %s belongs to a different user than %s",
                command.session_id,
                command.user_id,
            )
            raise ValidationError("Checkout session does not belong to this user")
        if session.payment_status != "paid":
            raise ValidationError("Payment not completed")
        if session.mode != "subscription":
            raise ValidationError("Not a subscription session")
        if not session.subscription_id:
            raise ValidationError("Checkout session has no subscription")

        subscription = await self.billing_provider.retrieve_subscription(session.subscription_id)
        if subscription.status not in PRO_PROVIDER_STATUSES:
            raise ValidationError(f"Subscription status is {subscription.status}, not active")

        try:
            record = await self.reconcile_handler.handle(
                ReconcileSubscriptionCommand(
                    user_id=command.user_id,
                    status=subscription.status,
                    customer_id=subscription.customer_id or session.customer_id,
                    subscription_id=subscription.id,
                    promotion_code=session.promotion_code,
                    source="auto_create",
                )
            )
        except ValueError as e:
            logger.warning(
                "Checkout session %s conflicts with a stored entitlement: %s", command.session_id, e
            )
            raise ValidationError("Billing customer is already linked to another user") from e

        logger.info(
            "License created from checkout session %s for user %s",
            command.session_id,
            command.user_id,
        )
        return LicenseCreationResultDTO(
            success=True,
            license_key=record.license_key,
            message="License created successfully",
        )
