"""
Event handlers for domain events.

These handlers process domain events asynchronously for side effects
like audit logging.
"""

import logging

from core.domain.events import DomainEvent, EventHandler
from entitlements.domain.events import (
    EntitlementDowngraded,
    EntitlementUpgraded,
    LicenseKeyIssued,
)

logger = logging.getLogger(__name__)

audit_logger = logging.getLogger("audit")


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes every entitlement event to the ``audit`` logger as a
    structured record.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        audit_logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra=event.to_dict(),
        )


def register_event_handlers(bus=None):
    """
    Register all event handlers with the event bus.

    Args:
        bus: Event bus to register on (defaults to the global bus)
    """
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    audit_handler = AuditLogEventHandler()
    for event_type in (EntitlementUpgraded, EntitlementDowngraded, LicenseKeyIssued):
        bus.subscribe(event_type, audit_handler)

    logger.info("Event handlers registered")
