"""
Entitlement repository port (interface).

This defines the contract for entitlement persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from entitlements.domain.entitlement import EntitlementRecord

# Receives the current record (None if missing) and returns the next one
EntitlementMutator = Callable[[Optional[EntitlementRecord]], EntitlementRecord]


class EntitlementRepository(ABC):
    """
    Abstract repository for EntitlementRecord entities.

    One record per user id. ``update`` is the only read-modify-write
    entry point; callers that change existing state go through it so
    writes for the same user serialize.
    """

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Optional[EntitlementRecord]:
        """
        Find the entitlement for a user.

        Args:
            user_id: Extension user identifier

        Returns:
            EntitlementRecord or None if not found
        """
        pass

    @abstractmethod
    async def find_by_customer_id(self, customer_id: str) -> Optional[EntitlementRecord]:
        """
        Find the entitlement holding a billing customer id.

        Args:
            customer_id: Billing provider customer id

        Returns:
            EntitlementRecord or None if not found
        """
        pass

    @abstractmethod
    async def save(self, record: EntitlementRecord) -> EntitlementRecord:
        """
        Insert or replace a record.

        A persisted non-null license key is never replaced by a different
        non-null key; the stored key wins.

        Args:
            record: Entitlement to persist

        Returns:
            The record as stored
        """
        pass

    @abstractmethod
    async def update(self, user_id: str, mutator: EntitlementMutator) -> EntitlementRecord:
        """
        Atomically read, transform and write a user's record.

        Args:
            user_id: Extension user identifier
            mutator: Function from current record (or None) to next record

        Returns:
            The record as stored after the mutation

        Raises:
            ValueError: If the result holds a customer id or license key
                already assigned to another user
        """
        pass

    @abstractmethod
    async def delete(self, user_id: str) -> bool:
        """
        Delete a user's record.

        Args:
            user_id: Extension user identifier

        Returns:
            True if a record was deleted
        """
        pass

    @abstractmethod
    async def list_with_subscription(self) -> List[EntitlementRecord]:
        """List records that hold a billing subscription id."""
        pass

    @abstractmethod
    async def list_all(self) -> List[EntitlementRecord]:
        """List every record, newest first."""
        pass
