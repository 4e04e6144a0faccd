"""
SweepSubscriptionsHandler.

Polling fallback: re-checks every stored subscription against the billing
provider. One failing record does not stop the sweep.
"""
import logging
from typing import List, Optional

from core.domain.exceptions import UpstreamError
from core.metrics import reconciliations_total
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.application.commands.sweep_subscriptions import SweepSubscriptionsCommand
from entitlements.application.dto.entitlement_dto import SweepReportDTO
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.domain.entitlement import EntitlementRecord
from entitlements.domain.reconciler import SubscriptionSignal, reconcile
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class SweepSubscriptionsHandler:
    """Handler for SweepSubscriptionsCommand."""

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

    async def handle(self, command: SweepSubscriptionsCommand) -> SweepReportDTO:
        """
        Handle sweep subscriptions command.

        Args:
            command: SweepSubscriptionsCommand

        Returns:
            SweepReportDTO with counts of checked, changed and failed records
        """
        report = SweepReportDTO()
        for record in await self._targets(command.user_id):
            report.checked += 1
            try:
                changed = await self._sweep_one(record, command.dry_run)
            except UpstreamError as e:
                report.failed += 1
                reconciliations_total.labels(source="sweep", outcome="provider_error").inc()
                logger.warning("Sweep could not fetch subscription for user %s: %s", record.user_id, e.message)
                continue
            except Exception:
                report.failed += 1
                reconciliations_total.labels(source="sweep", outcome="error").inc()
                logger.exception("Sweep failed to reconcile user %s", record.user_id)
                continue

            if changed:
                report.changed += 1
                report.changed_user_ids.append(record.user_id)

        logger.info(
            "Subscription sweep finished: %d checked, %d changed, %d failed",
            report.checked,
            report.changed,
            report.failed,
            extra={"dry_run": command.dry_run},
        )
        return report

    async def _sweep_one(self, record: EntitlementRecord, dry_run: bool) -> bool:
        """Re-check one record. Returns True if its state changed (or would change)."""
        subscription = await self.billing_provider.retrieve_subscription(record.billing_subscription_id)
        if dry_run:
            signal = SubscriptionSignal(
                user_id=record.user_id,
                status=subscription.status,
                customer_id=subscription.customer_id,
                subscription_id=subscription.id,
            )
            return reconcile(record, signal).state() != record.state()

        updated = await self.reconcile_handler.handle(
            ReconcileSubscriptionCommand(
                user_id=record.user_id,
                status=subscription.status,
                customer_id=subscription.customer_id,
                subscription_id=subscription.id,
                source="sweep",
            )
        )
        return updated.state() != record.state()

    async def _targets(self, user_id: Optional[str]) -> List[EntitlementRecord]:
        if user_id:
            record = await self.entitlement_repository.find_by_user_id(user_id)
            if record is None or not record.billing_subscription_id:
                return []
            return [record]
        return await self.entitlement_repository.list_with_subscription()
