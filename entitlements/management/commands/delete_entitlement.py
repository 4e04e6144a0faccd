"""
Django management command to delete a user's entitlement record.

Administrative cleanup only; records are otherwise never deleted.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from entitlements.infrastructure.wiring import get_entitlement_repository

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to delete an entitlement record."""

    help = "Delete the entitlement record of a user"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("user_id", help="User id whose entitlement is deleted")

    def handle(self, *args, **options):
        """Execute the command."""
        user_id = options["user_id"]
        deleted = async_to_sync(get_entitlement_repository().delete)(user_id)
        if not deleted:
            raise CommandError(f"No entitlement found for user {user_id}")

        logger.warning("Entitlement for user %s deleted by administrator", user_id)
        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS(f"Deleted entitlement for user {user_id}"))
