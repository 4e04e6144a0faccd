"""
Celery tasks for background reconciliation.

The sweep fans out one task per stored subscription so a slow or failing
provider call only delays its own user.
"""
import logging

from asgiref.sync import async_to_sync

from EntitlementService.celery import app
from entitlements.application.commands.verify_pro_status import VerifyProStatusCommand
from entitlements.application.handlers.verify_pro_status_handler import VerifyProStatusHandler
from entitlements.infrastructure.wiring import get_billing_provider, get_entitlement_repository

logger = logging.getLogger(__name__)


@app.task
def reconcile_subscription_task(user_id: str) -> dict:
    """
    Celery task re-checking one user's live subscription.

    Provider failures leave the stored entitlement unchanged; the next
    sweep picks the user up again.

    Args:
        user_id: Extension user identifier

    Returns:
        Resulting Pro status as a dict
    """
    handler = VerifyProStatusHandler(
        entitlement_repository=get_entitlement_repository(),
        billing_provider=get_billing_provider(),
    )
    result = async_to_sync(handler.handle)(VerifyProStatusCommand(user_id=user_id))
    return {"user_id": user_id, "valid": result.valid, "plan": result.plan}


@app.task
def sweep_subscriptions_task() -> int:
    """
    Enqueue a reconcile task for every entitlement holding a subscription.

    Returns:
        Number of tasks enqueued
    """
    records = async_to_sync(get_entitlement_repository().list_with_subscription)()
    for record in records:
        reconcile_subscription_task.delay(record.user_id)

    logger.info("Enqueued %d subscription reconciliation task(s)", len(records))
    return len(records)
