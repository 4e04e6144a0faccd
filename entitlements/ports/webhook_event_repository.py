"""
Processed webhook event repository port (interface).
"""
from abc import ABC, abstractmethod


class WebhookEventRepository(ABC):
    """Records webhook event ids that were handled successfully."""

    @abstractmethod
    async def is_processed(self, event_id: str) -> bool:
        """
        Check whether an event was already handled.

        Args:
            event_id: Provider event id

        Returns:
            True if the event id is recorded
        """
        pass

    @abstractmethod
    async def mark_processed(self, event_id: str, event_type: str) -> None:
        """
        Record an event as handled. Recording the same id twice is a no-op.

        Args:
            event_id: Provider event id
            event_type: Provider event type
        """
        pass
