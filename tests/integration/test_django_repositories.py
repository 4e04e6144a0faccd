"""
Integration tests for Django ORM repositories.
"""
import pytest
from asgiref.sync import async_to_sync

from core.domain.value_objects import Plan
from entitlements.domain.reconciler import SubscriptionSignal, reconcile
from entitlements.infrastructure.models import Entitlement, ProcessedWebhookEvent
from entitlements.infrastructure.repositories.django_webhook_event_repository import (
    DjangoWebhookEventRepository,
)
from tests.factories import make_pro_record, make_record


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoEntitlementRepository:
    """Integration tests for DjangoEntitlementRepository."""

    def test_save_and_find(self, django_repository):
        record = make_pro_record()

        saved = async_to_sync(django_repository.save)(record)
        found = async_to_sync(django_repository.find_by_user_id)(record.user_id)

        assert saved == record
        assert found == record
        assert found.plan is Plan.PRO
        assert Entitlement.objects.get(user_id=record.user_id).is_entitled is True

    def test_find_by_customer_id(self, django_repository, db_entitlement):
        found = async_to_sync(django_repository.find_by_customer_id)(db_entitlement.billing_customer_id)

        assert found.user_id == "db-user"
        assert async_to_sync(django_repository.find_by_customer_id)("cus_missing") is None

    def test_find_missing_user(self, django_repository):
        assert async_to_sync(django_repository.find_by_user_id)("ghost") is None

    def test_update_creates_and_modifies(self, django_repository):
        created = async_to_sync(django_repository.update)(
            "user-1", lambda current: current or make_record(billing_customer_id="cus_1")
        )
        updated = async_to_sync(django_repository.update)(
            "user-1", lambda current: current.merge({"status": "past_due"})
        )

        assert created.billing_customer_id == "cus_1"
        assert updated.status == "past_due"
        assert Entitlement.objects.get(user_id="user-1").status == "past_due"

    def test_update_without_change_skips_write(self, django_repository, db_entitlement):
        before = Entitlement.objects.get(user_id="db-user").updated_at

        result = async_to_sync(django_repository.update)("db-user", lambda current: current)

        assert result == db_entitlement
        assert Entitlement.objects.get(user_id="db-user").updated_at == before

    def test_stored_license_key_is_kept(self, django_repository, db_entitlement):
        """Test a write cannot replace a stored license key."""
        saved = async_to_sync(django_repository.save)(db_entitlement.merge({"license_key": "dd_9_other"}))

        assert saved.license_key == db_entitlement.license_key
        assert Entitlement.objects.get(user_id="db-user").license_key == db_entitlement.license_key

    def test_downgrade_keeps_key_and_clears_subscription(self, django_repository, db_entitlement):
        downgraded = db_entitlement.merge(
            {"plan": Plan.BASIC, "status": "cancelled", "billing_subscription_id": None}
        )

        saved = async_to_sync(django_repository.save)(downgraded)

        assert saved.license_key == db_entitlement.license_key
        assert saved.billing_subscription_id is None
        assert Entitlement.objects.get(user_id="db-user").is_entitled is False

    def test_list_with_subscription(self, django_repository, db_entitlement):
        async_to_sync(django_repository.save)(make_record("basic-user"))

        records = async_to_sync(django_repository.list_with_subscription)()

        assert [record.user_id for record in records] == ["db-user"]

    def test_list_all(self, django_repository, db_entitlement):
        async_to_sync(django_repository.save)(make_record("basic-user"))

        records = async_to_sync(django_repository.list_all)()

        assert {record.user_id for record in records} == {"db-user", "basic-user"}

    def test_delete(self, django_repository, db_entitlement):
        assert async_to_sync(django_repository.delete)("db-user") is True
        assert async_to_sync(django_repository.delete)("db-user") is False
        assert not Entitlement.objects.filter(user_id="db-user").exists()

    def test_first_write_does_not_replace_concurrently_issued_key(
        self, django_repository, monkeypatch
    ):
        """Test a first-time write that lost the insert race keeps the committed key."""
        Entitlement.objects.create(
            user_id="race-user", plan="pro", status="active", license_key="dd_1_committed"
        )
        real_locked = django_repository._locked
        reads = []

        def stale_locked(user_id):
            # First read happens before the other writer's row is visible
            reads.append(user_id)
            return None if len(reads) == 1 else real_locked(user_id)

        monkeypatch.setattr(django_repository, "_locked", stale_locked)
        signal = SubscriptionSignal(user_id="race-user", status="active", subscription_id="sub_race")

        result = async_to_sync(django_repository.update)(
            "race-user", lambda current: reconcile(current, signal)
        )

        assert len(reads) == 2
        assert result.license_key == "dd_1_committed"
        stored = Entitlement.objects.get(user_id="race-user")
        assert stored.license_key == "dd_1_committed"
        assert stored.billing_subscription_id == "sub_race"

    def test_customer_id_conflict_raises_value_error(self, django_repository, db_entitlement):
        with pytest.raises(ValueError):
            async_to_sync(django_repository.update)(
                "other-user",
                lambda current: make_record("other-user", billing_customer_id=db_entitlement.billing_customer_id),
            )

        assert not Entitlement.objects.filter(user_id="other-user").exists()


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoWebhookEventRepository:
    """Integration tests for DjangoWebhookEventRepository."""

    def test_mark_processed_is_idempotent(self):
        repository = DjangoWebhookEventRepository()

        assert async_to_sync(repository.is_processed)("evt_1") is False
        async_to_sync(repository.mark_processed)("evt_1", "invoice.paid")
        async_to_sync(repository.mark_processed)("evt_1", "invoice.paid")

        assert async_to_sync(repository.is_processed)("evt_1") is True
        assert ProcessedWebhookEvent.objects.filter(event_id="evt_1").count() == 1
