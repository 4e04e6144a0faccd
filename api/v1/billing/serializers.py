"""
Serializers for Billing API endpoints.

Field names are camelCase on the wire to match the extension client.
"""

from rest_framework import serializers


def _optional_text(source: str, max_length: int = 255) -> serializers.CharField:
    return serializers.CharField(
        source=source, required=False, allow_blank=True, default="", max_length=max_length
    )


class SessionRequestSerializer(serializers.Serializer):
    """Serializer for checkout and portal session requests."""

    userId = _optional_text("user_id")
    clientId = _optional_text("client_id", max_length=128)


class AutoCreateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for auto-create license request."""

    sessionId = _optional_text("session_id")
    userId = _optional_text("user_id")


class DebugCreateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for debug create license request."""

    userId = _optional_text("user_id")
    customerId = _optional_text("customer_id")


class CheckoutSessionResponseSerializer(serializers.Serializer):
    """Serializer for checkout session response."""

    checkoutUrl = serializers.CharField(source="checkout_url")
    sessionId = serializers.CharField(source="session_id")


class PortalSessionResponseSerializer(serializers.Serializer):
    """Serializer for portal session response."""

    portalUrl = serializers.CharField(source="portal_url")


class LicenseCreationResponseSerializer(serializers.Serializer):
    """Serializer for auto-create and debug license creation responses."""

    success = serializers.BooleanField()
    licenseKey = serializers.CharField(source="license_key", allow_null=True)
    message = serializers.CharField()


class WebhookResponseSerializer(serializers.Serializer):
    """Serializer for webhook acknowledgement."""

    received = serializers.BooleanField()


class EntitlementRowSerializer(serializers.Serializer):
    """Serializer for an entitlement listing row."""

    userId = serializers.CharField(source="user_id")
    licenseKey = serializers.CharField(source="license_key", allow_null=True)
    customerId = serializers.CharField(source="customer_id", allow_null=True)
    subscriptionId = serializers.CharField(source="subscription_id", allow_null=True)
    plan = serializers.CharField()
    status = serializers.CharField()


class EntitlementListResponseSerializer(serializers.Serializer):
    """Serializer for entitlement listing response."""

    count = serializers.IntegerField()
    licenses = EntitlementRowSerializer(many=True)
