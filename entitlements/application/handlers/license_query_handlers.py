"""
License query handlers.

Read-only lookups against the stored entitlement.
"""
import logging

from core.domain.exceptions import LicenseNotFoundError, ValidationError
from entitlements.application.dto.entitlement_dto import (
    EntitlementDTO,
    EntitlementListDTO,
    LicenseKeyDTO,
    VerifyLicenseResultDTO,
)
from entitlements.application.queries.get_license_key import GetLicenseKeyQuery
from entitlements.application.queries.list_entitlements import ListEntitlementsQuery
from entitlements.application.queries.verify_license import VerifyLicenseQuery
from entitlements.domain.entitlement import is_entitled
from entitlements.domain.license_key import license_keys_match
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)


class GetLicenseKeyHandler:
    """Handler for GetLicenseKeyQuery."""

    def __init__(self, entitlement_repository: EntitlementRepository):
        """Initialize handler with repository."""
        self.entitlement_repository = entitlement_repository

    async def handle(self, query: GetLicenseKeyQuery) -> LicenseKeyDTO:
        """
        Handle get license key query.

        Args:
            query: GetLicenseKeyQuery

        Returns:
            LicenseKeyDTO with the user's key

        Raises:
            ValidationError: If user id is missing
            LicenseNotFoundError: If the user is not entitled or has no key
        """
        if not query.user_id:
            raise ValidationError("Missing userId")

        record = await self.entitlement_repository.find_by_user_id(query.user_id)
        if not is_entitled(record) or not record.license_key:
            raise LicenseNotFoundError()

        return LicenseKeyDTO(license_key=record.license_key)


class VerifyLicenseHandler:
    """Handler for VerifyLicenseQuery."""

    def __init__(self, entitlement_repository: EntitlementRepository):
        """Initialize handler with repository."""
        self.entitlement_repository = entitlement_repository

    async def handle(self, query: VerifyLicenseQuery) -> VerifyLicenseResultDTO:
        """
        Handle verify license query.

        Args:
            query: VerifyLicenseQuery

        Returns:
            VerifyLicenseResultDTO; valid only when the key matches and the
            user is entitled

        Raises:
            ValidationError: If user id or license key is missing
        """
        if not query.user_id or not query.license_key:
            raise ValidationError("Missing userId or licenseKey")

        record = await self.entitlement_repository.find_by_user_id(query.user_id)
        if record is None or not license_keys_match(record.license_key, query.license_key):
            return VerifyLicenseResultDTO(valid=False, is_pro=False)
        if not is_entitled(record):
            return VerifyLicenseResultDTO(valid=False, is_pro=False)

        return VerifyLicenseResultDTO(valid=True, is_pro=True)


class ListEntitlementsHandler:
    """Handler for ListEntitlementsQuery."""

    def __init__(self, entitlement_repository: EntitlementRepository):
        self.entitlement_repository = entitlement_repository

    async def handle(self, query: ListEntitlementsQuery) -> EntitlementListDTO:
        records = await self.entitlement_repository.list_all()
        rows = [
            EntitlementDTO(
                user_id=record.user_id,
                license_key=record.license_key,
                customer_id=record.billing_customer_id,
                subscription_id=record.billing_subscription_id,
                plan=record.plan.value,
                status=record.status or "unknown",
            )
            for record in records
        ]
        return EntitlementListDTO(count=len(rows), licenses=rows)
