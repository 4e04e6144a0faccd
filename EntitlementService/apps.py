"""
App configuration for Entitlement Service.
"""

import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# Management commands that never serve traffic
_SKIP_OBSERVABILITY_COMMANDS = {
    "migrate",
    "makemigrations",
    "collectstatic",
    "shell",
    "check",
    "createsuperuser",
}


class EntitlementServiceConfig(AppConfig):
    """App configuration for EntitlementService."""

    name = "EntitlementService"
    verbose_name = "Entitlement Service"

    def ready(self):
        """Called when Django starts."""
        from core.infrastructure.event_handlers import register_event_handlers

        register_event_handlers()

        if not settings.OBSERVABILITY_ENABLED:
            return
        if len(sys.argv) > 1 and sys.argv[1] in _SKIP_OBSERVABILITY_COMMANDS:
            return
        # Django's autoreloader parent process does not serve requests
        if os.environ.get("RUN_MAIN") == "false":
            return

        self.setup_observability()

    def setup_observability(self):
        """Setup observability after apps are ready."""
        from core.instrumentation import setup_opentelemetry

        logger.info("Setting up observability...")
        setup_opentelemetry()
        logger.info("Observability setup complete")
