"""
Django management command to reconcile stored subscriptions with the billing provider.

This command should be run periodically (e.g., via cron) where Celery beat is not available.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from entitlements.application.commands.sweep_subscriptions import SweepSubscriptionsCommand
from entitlements.application.handlers.sweep_subscriptions_handler import (
    SweepSubscriptionsHandler,
)
from entitlements.infrastructure.wiring import get_billing_provider, get_entitlement_repository

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to reconcile entitlements against live subscriptions."""

    help = "Re-check stored subscriptions against the billing provider"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - report changes without saving them",
        )
        parser.add_argument(
            "--user",
            dest="user_id",
            default=None,
            help="Only reconcile this user id",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        handler = SweepSubscriptionsHandler(
            entitlement_repository=get_entitlement_repository(),
            billing_provider=get_billing_provider(),
        )

        if dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))

        report = async_to_sync(handler.handle)(
            SweepSubscriptionsCommand(dry_run=dry_run, user_id=options["user_id"])
        )

        for user_id in report.changed_user_ids[:10]:
            self.stdout.write(f"  - {'Would update' if dry_run else 'Updated'} {user_id}")

        summary = (
            f"Checked {report.checked} subscription(s): "
            f"{report.changed} changed, {report.failed} failed"
        )
        # pylint: disable=no-member
        style = self.style.WARNING if report.failed else self.style.SUCCESS
        self.stdout.write(style(summary))
