"""
VerifyProStatusHandler.

Answers "is this user Pro right now" by re-checking the live subscription
when one is on file. Provider failures leave the stored state unchanged
and the answer is computed from it.
"""
import logging
from typing import Optional

from core.domain.exceptions import UpstreamError, ValidationError
from core.domain.value_objects import Plan
from core.metrics import reconciliations_total
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.application.commands.verify_pro_status import VerifyProStatusCommand
from entitlements.application.dto.entitlement_dto import ProStatusDTO
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.domain.entitlement import is_entitled
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class VerifyProStatusHandler:
    """Handler for VerifyProStatusCommand."""

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

    async def handle(self, command: VerifyProStatusCommand) -> ProStatusDTO:
        """
        Handle verify Pro status command.

        Args:
            command: VerifyProStatusCommand

        Returns:
            ProStatusDTO; ``license_key`` is set only when valid

        Raises:
            ValidationError: If user id is missing
        """
        if not command.user_id:
            raise ValidationError("userId required")

        record = await self.entitlement_repository.find_by_user_id(command.user_id)
        if record is None:
            return ProStatusDTO(valid=False, plan=Plan.BASIC.value)

        if record.billing_subscription_id:
            try:
                subscription = await self.billing_provider.retrieve_subscription(
                    record.billing_subscription_id
                )
            except UpstreamError as e:
                reconciliations_total.labels(source="poll", outcome="provider_error").inc()
                logger.warning(
                    "Live subscription check failed for user %s, answering from stored state: %s",
                    command.user_id,
                    e.message,
                )
            else:
                record = await self.reconcile_handler.handle(
                    ReconcileSubscriptionCommand(
                        user_id=record.user_id,
                        status=subscription.status,
                        customer_id=subscription.customer_id,
                        subscription_id=subscription.id,
                        source="poll",
                    )
                )

        if is_entitled(record):
            return ProStatusDTO(valid=True, plan=Plan.PRO.value, license_key=record.license_key)
        return ProStatusDTO(valid=False, plan=Plan.BASIC.value)
