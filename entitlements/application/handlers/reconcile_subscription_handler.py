"""
ReconcileSubscriptionHandler.

Applies a subscription signal to the stored entitlement through the
repository's serialized update, then publishes the resulting domain events.
"""
import logging
from typing import List, Optional

from core.domain.events import DomainEvent, EventBus
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import (
    entitlement_transitions_total,
    license_keys_issued_total,
    reconciliations_total,
)
from entitlements.application.commands.reconcile_subscription import (
    ReconcileSubscriptionCommand,
)
from entitlements.domain.entitlement import EntitlementRecord
from entitlements.domain.events import (
    EntitlementDowngraded,
    EntitlementUpgraded,
    LicenseKeyIssued,
)
from entitlements.domain.reconciler import SubscriptionSignal, reconcile
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class ReconcileSubscriptionHandler:
    """Handler for ReconcileSubscriptionCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repository and event bus."""
        self.entitlement_repository = entitlement_repository
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ReconcileSubscriptionCommand) -> EntitlementRecord:
        """
        Handle reconcile subscription command.

        Args:
            command: ReconcileSubscriptionCommand

        Returns:
            The entitlement as stored after reconciliation
        """
        signal = SubscriptionSignal(
            user_id=command.user_id,
            status=command.status,
            customer_id=command.customer_id,
            subscription_id=command.subscription_id,
            license_key_if_new=command.license_key_if_new,
            promotion_code=command.promotion_code,
        )

        # The mutator runs under the repository lock; capture what it saw
        seen: List[Optional[EntitlementRecord]] = []

        def mutate(existing: Optional[EntitlementRecord]) -> EntitlementRecord:
            seen.append(existing)
            return reconcile(existing, signal)

        record = await self.entitlement_repository.update(command.user_id, mutate)
        previous = seen[-1] if seen else None

        if previous is None:
            outcome = "created"
        elif previous.state() == record.state():
            outcome = "unchanged"
        else:
            outcome = "updated"
        reconciliations_total.labels(source=command.source, outcome=outcome).inc()

        logger.info(
            "Reconciled entitlement for user %s: %s",
            command.user_id,
            outcome,
            extra={
                "user_id": command.user_id,
                "source": command.source,
                "provider_status": command.status,
                "plan": record.plan.value,
                "status": record.status,
            },
        )

        for event in self._events_for(previous, record, command.source):
            await self.event_bus.publish(event)

        return record

    def _events_for(
        self,
        previous: Optional[EntitlementRecord],
        record: EntitlementRecord,
        source: str,
    ) -> List[DomainEvent]:
        """Derive domain events from a before/after pair and record transition metrics."""
        events: List[DomainEvent] = []
        was_pro = previous is not None and previous.is_pro
        previous_plan = previous.plan.value if previous is not None else "none"

        if previous_plan != record.plan.value:
            entitlement_transitions_total.labels(
                from_plan=previous_plan, to_plan=record.plan.value
            ).inc()

        if record.is_pro and not was_pro:
            events.append(
                EntitlementUpgraded(aggregate_id=record.user_id, user_id=record.user_id, source=source)
            )
        elif was_pro and not record.is_pro:
            events.append(
                EntitlementDowngraded(
                    aggregate_id=record.user_id,
                    user_id=record.user_id,
                    status=record.status,
                    source=source,
                )
            )

        previous_key = previous.license_key if previous is not None else None
        if record.license_key and record.license_key != previous_key:
            license_keys_issued_total.inc()
            events.append(LicenseKeyIssued(aggregate_id=record.user_id, user_id=record.user_id))

        return events
