"""
Django implementation of EntitlementRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import logging
from dataclasses import replace
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction

from core.domain.value_objects import Plan
from entitlements.domain.entitlement import EntitlementRecord
from entitlements.infrastructure.models import Entitlement as EntitlementModel
from entitlements.ports.entitlement_repository import EntitlementMutator, EntitlementRepository

logger = logging.getLogger(__name__)


class DjangoEntitlementRepository(EntitlementRepository):
    """
    Django ORM implementation of EntitlementRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Serializes writes per user with a row lock
    """

    def _to_domain(self, model: EntitlementModel) -> EntitlementRecord:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Entitlement model

        Returns:
            EntitlementRecord domain entity
        """
        return EntitlementRecord(
            user_id=model.user_id,
            plan=Plan(model.plan),
            status=model.status,
            billing_customer_id=model.billing_customer_id,
            billing_subscription_id=model.billing_subscription_id,
            license_key=model.license_key,
            promotion_code=model.promotion_code,
            activated_at=model.activated_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _locked(self, user_id: str) -> Optional[EntitlementModel]:
        """Fetch a row under SELECT ... FOR UPDATE. Must run inside a transaction."""
        return EntitlementModel.objects.select_for_update().filter(user_id=user_id).first()

    def _write(self, record: EntitlementRecord, model: Optional[EntitlementModel]) -> EntitlementRecord:
        """
        Persist a record over the locked row.

        Args:
            record: Entitlement to persist
            model: Locked row for the same user, or None

        Returns:
            The record as stored
        """
        stored_key = model.license_key if model is not None else None
        if stored_key and record.license_key and record.license_key != stored_key:
            logger.warning(
                "Refusing to replace license key for user %s; keeping stored key",
                record.user_id,
            )
            record = replace(record, license_key=stored_key)

        created = model is None
        if created:
            model = EntitlementModel(user_id=record.user_id)

        model.plan = record.plan.value
        model.status = record.status
        model.billing_customer_id = record.billing_customer_id
        model.billing_subscription_id = record.billing_subscription_id
        model.license_key = record.license_key
        model.promotion_code = record.promotion_code
        model.activated_at = record.activated_at
        model.created_at = record.created_at
        model.updated_at = record.updated_at
        model.save(force_insert=created)
        return self._to_domain(model)

    @sync_to_async
    def find_by_user_id(self, user_id: str) -> Optional[EntitlementRecord]:
        """
        Find the entitlement for a user.

        Args:
            user_id: Extension user identifier

        Returns:
            EntitlementRecord or None if not found
        """
        try:
            return self._to_domain(EntitlementModel.objects.get(user_id=user_id))
        except EntitlementModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_customer_id(self, customer_id: str) -> Optional[EntitlementRecord]:
        """
        Find the entitlement holding a billing customer id.

        Args:
            customer_id: Billing provider customer id

        Returns:
            EntitlementRecord or None if not found
        """
        try:
            return self._to_domain(EntitlementModel.objects.get(billing_customer_id=customer_id))
        except EntitlementModel.DoesNotExist:
            return None

    @sync_to_async
    def save(self, record: EntitlementRecord) -> EntitlementRecord:
        """
        Insert or replace a record.

        Args:
            record: Entitlement to persist

        Returns:
            The record as stored
        """
        return self._apply(record.user_id, lambda current: record)

    @sync_to_async
    def update(self, user_id: str, mutator: EntitlementMutator) -> EntitlementRecord:
        """
        Atomically read, transform and write a user's record.

        Args:
            user_id: Extension user identifier
            mutator: Function from current record (or None) to next record

        Returns:
            The record as stored after the mutation
        """
        return self._apply(user_id, mutator)

    def _apply(self, user_id: str, mutator: EntitlementMutator) -> EntitlementRecord:
        """
        Locked read-mutate-write.

        A missing row cannot be locked, so the first write for a user is a
        plain INSERT. If another writer inserted the row first, the
        mutation is re-run once against the committed row.

        Raises:
            ValueError: If the write conflicts with another user's
                customer id or license key
        """
        for attempt in range(2):
            try:
                with transaction.atomic():
                    model = self._locked(user_id)
                    current = self._to_domain(model) if model is not None else None
                    updated = mutator(current)
                    if current is not None and updated is current:
                        return current
                    return self._write(updated, model)
            except IntegrityError as e:
                if attempt == 0 and EntitlementModel.objects.filter(user_id=user_id).exists():
                    logger.info("Entitlement for user %s was created concurrently; retrying", user_id)
                    continue
                raise ValueError(f"Entitlement for user {user_id} conflicts with another record") from e

    @sync_to_async
    def delete(self, user_id: str) -> bool:
        """
        Delete a user's record.

        Args:
            user_id: Extension user identifier

        Returns:
            True if a record was deleted
        """
        deleted, _ = EntitlementModel.objects.filter(user_id=user_id).delete()
        return deleted > 0

    @sync_to_async
    def list_with_subscription(self) -> List[EntitlementRecord]:
        """List records that hold a billing subscription id."""
        models = EntitlementModel.objects.exclude(billing_subscription_id__isnull=True).exclude(
            billing_subscription_id=""
        )
        return [self._to_domain(model) for model in models]

    @sync_to_async
    def list_all(self) -> List[EntitlementRecord]:
        """List every record, newest first."""
        return [self._to_domain(model) for model in EntitlementModel.objects.all()]
