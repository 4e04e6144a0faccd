"""
Serializers for License API endpoints.

Field names are camelCase on the wire to match the extension client.
"""

from rest_framework import serializers


class UserIdRequestSerializer(serializers.Serializer):
    """Serializer for requests identified only by user id."""

    userId = serializers.CharField(source="user_id", required=False, allow_blank=True, default="", max_length=255)


class VerifyLicenseRequestSerializer(serializers.Serializer):
    """Serializer for verify license request."""

    userId = serializers.CharField(source="user_id", required=False, allow_blank=True, default="", max_length=255)
    licenseKey = serializers.CharField(
        source="license_key", required=False, allow_blank=True, default="", max_length=100
    )


class LicenseKeyResponseSerializer(serializers.Serializer):
    """Serializer for license lookup response."""

    licenseKey = serializers.CharField(source="license_key")


class VerifyLicenseResponseSerializer(serializers.Serializer):
    """Serializer for verify license response."""

    valid = serializers.BooleanField()
    isPro = serializers.BooleanField(source="is_pro")


class ProStatusResponseSerializer(serializers.Serializer):
    """Serializer for verify Pro status response. ``licenseKey`` only appears when valid."""

    valid = serializers.BooleanField()
    plan = serializers.CharField()
    licenseKey = serializers.CharField(source="license_key", required=False)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if not data.get("licenseKey"):
            data.pop("licenseKey", None)
        return data
