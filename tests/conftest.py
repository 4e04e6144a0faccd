"""
Pytest configuration and shared fixtures.
"""

import pytest
from asgiref.sync import async_to_sync

from core.infrastructure.events import InMemoryEventBus
from entitlements.application.handlers.reconcile_subscription_handler import (
    ReconcileSubscriptionHandler,
)
from entitlements.infrastructure.repositories.django_entitlement_repository import (
    DjangoEntitlementRepository,
)
from entitlements.infrastructure.repositories.in_memory_repositories import (
    InMemoryEntitlementRepository,
    InMemoryWebhookEventRepository,
)
from tests.factories import FakeBillingProvider, make_pro_record


@pytest.fixture
def billing_provider():
    """Fixture for a fake BillingProvider."""
    return FakeBillingProvider()


@pytest.fixture
def entitlement_repository():
    """Fixture for an in-memory EntitlementRepository."""
    return InMemoryEntitlementRepository()


@pytest.fixture
def webhook_event_repository():
    """Fixture for an in-memory WebhookEventRepository."""
    return InMemoryWebhookEventRepository()


@pytest.fixture
def event_bus():
    """Fixture for an isolated event bus."""
    return InMemoryEventBus()


@pytest.fixture
def reconcile_handler(entitlement_repository, event_bus):
    """Fixture for ReconcileSubscriptionHandler on the in-memory store."""
    return ReconcileSubscriptionHandler(entitlement_repository, event_bus=event_bus)


@pytest.fixture
def django_repository():
    """Fixture for the Django ORM EntitlementRepository."""
    return DjangoEntitlementRepository()


@pytest.fixture
def db_entitlement(db, django_repository):
    """Fixture for a Pro entitlement saved in database."""
    return async_to_sync(django_repository.save)(make_pro_record("db-user"))


@pytest.fixture
def api_provider(monkeypatch, billing_provider):
    """Route every view's billing provider to the fake."""
    monkeypatch.setattr("api.v1.license.views.get_billing_provider", lambda: billing_provider)
    monkeypatch.setattr("api.v1.billing.views.get_billing_provider", lambda: billing_provider)
    return billing_provider


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()
