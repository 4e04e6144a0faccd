"""
Integration tests for Celery tasks and management commands.
"""
from io import StringIO

import pytest
from asgiref.sync import async_to_sync
from django.core.management import CommandError, call_command

from entitlements.infrastructure.models import Entitlement
from entitlements.tasks import reconcile_subscription_task, sweep_subscriptions_task
from tests.factories import make_pro_record


@pytest.fixture
def patched_provider(monkeypatch, billing_provider):
    monkeypatch.setattr("entitlements.tasks.get_billing_provider", lambda: billing_provider)
    monkeypatch.setattr(
        "entitlements.management.commands.reconcile_entitlements.get_billing_provider",
        lambda: billing_provider,
    )
    return billing_provider


@pytest.mark.django_db
@pytest.mark.integration
class TestReconcileTasks:
    """Integration tests for reconciliation tasks."""

    def test_reconcile_subscription_task(self, patched_provider, db_entitlement):
        patched_provider.add_subscription(
            db_entitlement.billing_subscription_id, db_entitlement.billing_customer_id, "unpaid"
        )

        result = reconcile_subscription_task("db-user")

        assert result == {"user_id": "db-user", "valid": False, "plan": "basic"}
        assert Entitlement.objects.get(user_id="db-user").status == "cancelled"

    def test_sweep_task_fans_out(self, patched_provider, django_repository, db_entitlement):
        """Test the sweep enqueues one task per subscription; eager mode runs them inline."""
        other = async_to_sync(django_repository.save)(make_pro_record("other-user"))
        patched_provider.add_subscription(
            db_entitlement.billing_subscription_id, db_entitlement.billing_customer_id, "active"
        )
        patched_provider.add_subscription(other.billing_subscription_id, other.billing_customer_id, "canceled")

        enqueued = sweep_subscriptions_task()

        assert enqueued == 2
        assert Entitlement.objects.get(user_id="db-user").plan == "pro"
        assert Entitlement.objects.get(user_id="other-user").plan == "basic"


@pytest.mark.django_db
@pytest.mark.integration
class TestManagementCommands:
    """Integration tests for management commands."""

    def test_reconcile_entitlements_dry_run(self, patched_provider, db_entitlement):
        patched_provider.add_subscription(
            db_entitlement.billing_subscription_id, db_entitlement.billing_customer_id, "canceled"
        )
        out = StringIO()

        call_command("reconcile_entitlements", "--dry-run", stdout=out)

        output = out.getvalue()
        assert "DRY RUN" in output
        assert "Would update db-user" in output
        assert Entitlement.objects.get(user_id="db-user").plan == "pro"

    def test_reconcile_entitlements_single_user(self, patched_provider, db_entitlement):
        patched_provider.add_subscription(
            db_entitlement.billing_subscription_id, db_entitlement.billing_customer_id, "canceled"
        )
        out = StringIO()

        call_command("reconcile_entitlements", "--user", "db-user", stdout=out)

        assert "1 changed, 0 failed" in out.getvalue()
        assert Entitlement.objects.get(user_id="db-user").plan == "basic"

    def test_delete_entitlement(self, db_entitlement):
        out = StringIO()

        call_command("delete_entitlement", "db-user", stdout=out)

        assert "Deleted entitlement for user db-user" in out.getvalue()
        assert not Entitlement.objects.filter(user_id="db-user").exists()

    def test_delete_missing_entitlement(self):
        with pytest.raises(CommandError, match="No entitlement found"):
            call_command("delete_entitlement", "ghost")
