"""
Model registration for the entitlements app.
"""
from entitlements.infrastructure.models import Entitlement, ProcessedWebhookEvent

__all__ = ["Entitlement", "ProcessedWebhookEvent"]
