"""
Entitlement and ProcessedWebhookEvent models.
"""
from django.db import models
from django.utils import timezone


class Entitlement(models.Model):
    """
    One row per extension user.
    Holds the plan, billing identifiers and the issued license key.
    """

    PLAN_CHOICES = [
        ("basic", "Basic"),
        ("pro", "Pro"),
    ]

    user_id = models.CharField(max_length=255, primary_key=True)
    plan = models.CharField(max_length=10, choices=PLAN_CHOICES, default="basic")
    status = models.CharField(
        max_length=50,
        default="active",
        help_text="Entitlement status or raw provider status",
    )
    billing_customer_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    billing_subscription_id = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    license_key = models.CharField(max_length=100, unique=True, null=True, blank=True)
    promotion_code = models.CharField(max_length=255, null=True, blank=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    # Timestamps are owned by the domain entity; updated_at only moves on real changes
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "entitlements"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["plan", "status"], name="entitlements_plan_status_idx"),
        ]

    def __str__(self):
        return f"{self.user_id} ({self.plan})"

    @property
    def is_entitled(self) -> bool:
        """
        Check if the row grants Pro features.

        Returns:
            True if on the Pro plan and not cancelled or expired
        """
        return self.plan == "pro" and self.status not in ("cancelled", "expired")


class ProcessedWebhookEvent(models.Model):
    """
    Webhook event ids that were handled successfully.
    Redelivered events are acknowledged without being dispatched again.
    """

    event_id = models.CharField(max_length=255, unique=True)
    event_type = models.CharField(max_length=100)
    processed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "processed_webhook_events"
        ordering = ["-processed_at"]
        indexes = [
            models.Index(fields=["processed_at"], name="processed_webhook_at_idx"),
        ]

    def __str__(self):
        return f"{self.event_type} {self.event_id}"
