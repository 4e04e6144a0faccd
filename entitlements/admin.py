"""
Django admin configuration for entitlements app.
"""
from django.contrib import admin
from django.utils.html import format_html

from entitlements.infrastructure.models import Entitlement, ProcessedWebhookEvent


@admin.register(Entitlement)
class EntitlementAdmin(admin.ModelAdmin):
    """Admin interface for Entitlement model."""

    list_display = [
        "user_id",
        "plan_display",
        "status",
        "billing_customer_id",
        "license_key",
        "activated_at",
        "updated_at",
    ]
    list_filter = ["plan", "status", "activated_at", "created_at"]
    search_fields = [
        "user_id",
        "billing_customer_id",
        "billing_subscription_id",
        "license_key",
    ]
    readonly_fields = ["user_id", "license_key", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("user_id", "plan", "status", "license_key", "promotion_code"),
            },
        ),
        (
            "Billing",
            {
                "fields": ("billing_customer_id", "billing_subscription_id", "activated_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def plan_display(self, obj):
        """Display plan with color coding."""
        color = "green" if obj.is_entitled else "gray"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.plan.upper(),
        )

    plan_display.short_description = "Plan"


@admin.register(ProcessedWebhookEvent)
class ProcessedWebhookEventAdmin(admin.ModelAdmin):
    """Admin interface for ProcessedWebhookEvent model."""

    list_display = ["event_id", "event_type", "processed_at"]
    list_filter = ["event_type", "processed_at"]
    search_fields = ["event_id"]
    readonly_fields = ["event_id", "event_type", "processed_at"]

    def has_add_permission(self, request):
        """Processed events are recorded by the webhook handler only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Processed events are read-only."""
        return False
