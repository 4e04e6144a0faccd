"""
Default adapter instances for the entitlement ports.

Views, tasks and management commands obtain their collaborators here
so tests can patch a single seam.
"""
from functools import lru_cache

from entitlements.infrastructure.repositories.django_entitlement_repository import (
    DjangoEntitlementRepository,
)
from entitlements.infrastructure.repositories.django_webhook_event_repository import (
    DjangoWebhookEventRepository,
)
from entitlements.infrastructure.stripe_billing_provider import StripeBillingProvider
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository
from entitlements.ports.webhook_event_repository import WebhookEventRepository

_entitlement_repo = DjangoEntitlementRepository()
_webhook_event_repo = DjangoWebhookEventRepository()


def get_entitlement_repository() -> EntitlementRepository:
    return _entitlement_repo


def get_webhook_event_repository() -> WebhookEventRepository:
    return _webhook_event_repo


@lru_cache(maxsize=1)
def get_billing_provider() -> BillingProvider:
    """Stripe provider, created on first use so settings are read lazily."""
    return StripeBillingProvider()
