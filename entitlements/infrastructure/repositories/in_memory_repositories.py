"""
In-memory implementations of the entitlement ports.

Used by tests and isolated runs. Writes for the same user serialize
through a per-user asyncio lock.
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Optional, Set

from entitlements.domain.entitlement import EntitlementRecord
from entitlements.ports.entitlement_repository import EntitlementMutator, EntitlementRepository
from entitlements.ports.webhook_event_repository import WebhookEventRepository

logger = logging.getLogger(__name__)


class InMemoryEntitlementRepository(EntitlementRepository):
    """Dictionary-backed EntitlementRepository."""

    def __init__(self):
        self._records: Dict[str, EntitlementRecord] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _check_unique(self, record: EntitlementRecord) -> None:
        """Enforce the same unique constraints as the database."""
        for other in self._records.values():
            if other.user_id == record.user_id:
                continue
            if record.billing_customer_id and other.billing_customer_id == record.billing_customer_id:
                raise ValueError(f"Customer id already assigned: {record.billing_customer_id}")
            if record.license_key and other.license_key == record.license_key:
                raise ValueError("License key already assigned")

    def _write(self, record: EntitlementRecord) -> EntitlementRecord:
        stored = self._records.get(record.user_id)
        stored_key = stored.license_key if stored is not None else None
        if stored_key and record.license_key and record.license_key != stored_key:
            logger.warning(
                "Refusing to replace license key for user %s; keeping stored key",
                record.user_id,
            )
            record = replace(record, license_key=stored_key)
        self._check_unique(record)
        self._records[record.user_id] = record
        return record

    async def find_by_user_id(self, user_id: str) -> Optional[EntitlementRecord]:
        return self._records.get(user_id)

    async def find_by_customer_id(self, customer_id: str) -> Optional[EntitlementRecord]:
        for record in self._records.values():
            if record.billing_customer_id == customer_id:
                return record
        return None

    async def save(self, record: EntitlementRecord) -> EntitlementRecord:
        async with self._locks[record.user_id]:
            return self._write(record)

    async def update(self, user_id: str, mutator: EntitlementMutator) -> EntitlementRecord:
        async with self._locks[user_id]:
            current = self._records.get(user_id)
            updated = mutator(current)
            if current is not None and updated is current:
                return current
            return self._write(updated)

    async def delete(self, user_id: str) -> bool:
        async with self._locks[user_id]:
            return self._records.pop(user_id, None) is not None

    async def list_with_subscription(self) -> List[EntitlementRecord]:
        return [record for record in self._records.values() if record.billing_subscription_id]

    async def list_all(self) -> List[EntitlementRecord]:
        return sorted(self._records.values(), key=lambda record: record.created_at, reverse=True)


class InMemoryWebhookEventRepository(WebhookEventRepository):
    """Set-backed WebhookEventRepository."""

    def __init__(self):
        self._processed: Set[str] = set()

    async def is_processed(self, event_id: str) -> bool:
        return event_id in self._processed

    async def mark_processed(self, event_id: str, event_type: str) -> None:
        self._processed.add(event_id)
