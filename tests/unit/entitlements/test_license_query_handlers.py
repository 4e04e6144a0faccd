"""
Unit tests for license query handlers.
"""
import pytest

from core.domain.exceptions import LicenseNotFoundError, ValidationError
from entitlements.application.handlers.license_query_handlers import (
    GetLicenseKeyHandler,
    ListEntitlementsHandler,
    VerifyLicenseHandler,
)
from entitlements.application.queries.get_license_key import GetLicenseKeyQuery
from entitlements.application.queries.list_entitlements import ListEntitlementsQuery
from entitlements.application.queries.verify_license import VerifyLicenseQuery
from tests.factories import make_pro_record, make_record


@pytest.mark.asyncio
class TestGetLicenseKeyHandler:
    """Tests for GetLicenseKeyHandler."""

    async def test_returns_key_for_pro_user(self, entitlement_repository):
        record = await entitlement_repository.save(make_pro_record())
        handler = GetLicenseKeyHandler(entitlement_repository)

        result = await handler.handle(GetLicenseKeyQuery(user_id=record.user_id))

        assert result.license_key == record.license_key

    async def test_missing_user_id(self, entitlement_repository):
        with pytest.raises(ValidationError, match="Missing userId"):
            await GetLicenseKeyHandler(entitlement_repository).handle(GetLicenseKeyQuery(user_id=""))

    async def test_unknown_user_not_found(self, entitlement_repository):
        with pytest.raises(LicenseNotFoundError):
            await GetLicenseKeyHandler(entitlement_repository).handle(GetLicenseKeyQuery(user_id="ghost"))

    async def test_cancelled_user_with_key_not_found(self, entitlement_repository):
        """Test a downgraded user keeps the key but cannot fetch it."""
        await entitlement_repository.save(make_record(status="cancelled", license_key="dd_1_kept"))

        with pytest.raises(LicenseNotFoundError) as exc_info:
            await GetLicenseKeyHandler(entitlement_repository).handle(GetLicenseKeyQuery(user_id="user-1"))

        assert exc_info.value.message == "No license found for this user"


@pytest.mark.asyncio
class TestVerifyLicenseHandler:
    """Tests for VerifyLicenseHandler."""

    async def test_matching_key_is_valid(self, entitlement_repository):
        record = await entitlement_repository.save(make_pro_record())

        result = await VerifyLicenseHandler(entitlement_repository).handle(
            VerifyLicenseQuery(user_id=record.user_id, license_key=record.license_key)
        )

        assert result.valid is True
        assert result.is_pro is True

    async def test_wrong_key_is_invalid(self, entitlement_repository):
        record = await entitlement_repository.save(make_pro_record())

        result = await VerifyLicenseHandler(entitlement_repository).handle(
            VerifyLicenseQuery(user_id=record.user_id, license_key="dd_0_wrong")
        )

        assert result.valid is False
        assert result.is_pro is False

    async def test_key_of_downgraded_user_is_invalid(self, entitlement_repository):
        await entitlement_repository.save(make_record(status="cancelled", license_key="dd_1_kept"))

        result = await VerifyLicenseHandler(entitlement_repository).handle(
            VerifyLicenseQuery(user_id="user-1", license_key="dd_1_kept")
        )

        assert result.valid is False

    async def test_unknown_user_is_invalid(self, entitlement_repository):
        result = await VerifyLicenseHandler(entitlement_repository).handle(
            VerifyLicenseQuery(user_id="ghost", license_key="dd_1_any")
        )

        assert result.valid is False

    @pytest.mark.parametrize("user_id,license_key", [("", "dd_1_x"), ("user-1", "")])
    async def test_missing_fields(self, entitlement_repository, user_id, license_key):
        with pytest.raises(ValidationError, match="Missing userId or licenseKey"):
            await VerifyLicenseHandler(entitlement_repository).handle(
                VerifyLicenseQuery(user_id=user_id, license_key=license_key)
            )


@pytest.mark.asyncio
class TestListEntitlementsHandler:
    """Tests for ListEntitlementsHandler."""

    async def test_lists_all_records(self, entitlement_repository):
        await entitlement_repository.save(make_pro_record("user-a"))
        await entitlement_repository.save(make_record("user-b"))

        result = await ListEntitlementsHandler(entitlement_repository).handle(ListEntitlementsQuery())

        assert result.count == 2
        by_user = {row.user_id: row for row in result.licenses}
        assert by_user["user-a"].plan == "pro"
        assert by_user["user-a"].customer_id == "cus_user-a"
        assert by_user["user-b"].license_key is None
