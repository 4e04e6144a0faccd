"""
Django implementation of WebhookEventRepository port.
"""
from asgiref.sync import sync_to_async

from entitlements.infrastructure.models import ProcessedWebhookEvent
from entitlements.ports.webhook_event_repository import WebhookEventRepository


class DjangoWebhookEventRepository(WebhookEventRepository):
    """Django ORM implementation of WebhookEventRepository."""

    @sync_to_async
    def is_processed(self, event_id: str) -> bool:
        return ProcessedWebhookEvent.objects.filter(event_id=event_id).exists()

    @sync_to_async
    def mark_processed(self, event_id: str, event_type: str) -> None:
        ProcessedWebhookEvent.objects.get_or_create(
            event_id=event_id, defaults={"event_type": event_type}
        )
