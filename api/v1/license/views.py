"""
License API views.

These endpoints are used by the extension to:
- Fetch the license key of an entitled user
- Verify a stored license key
- Verify Pro status against the live subscription
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.license.serializers import (
    LicenseKeyResponseSerializer,
    ProStatusResponseSerializer,
    UserIdRequestSerializer,
    VerifyLicenseRequestSerializer,
    VerifyLicenseResponseSerializer,
)
from api.v1.validation import validate_request
from core.instrumentation import Status, StatusCode, get_tracer
from entitlements.application.commands.verify_pro_status import VerifyProStatusCommand
from entitlements.application.handlers.license_query_handlers import (
    GetLicenseKeyHandler,
    VerifyLicenseHandler,
)
from entitlements.application.handlers.verify_pro_status_handler import VerifyProStatusHandler
from entitlements.application.queries.get_license_key import GetLicenseKeyQuery
from entitlements.application.queries.verify_license import VerifyLicenseQuery
from entitlements.infrastructure.wiring import get_billing_provider, get_entitlement_repository

tracer = get_tracer(__name__)


class GetLicenseView(APIView):
    """View for fetching a user's license key."""

    @extend_schema(
        operation_id="get_license",
        summary="Get License Key",
        description="Return the license key of a user on an active Pro plan.",
        tags=["License API"],
        parameters=[
            OpenApiParameter(
                name="userId",
                type=str,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Extension user identifier",
            ),
        ],
        responses={
            200: LicenseKeyResponseSerializer,
            400: {"description": "Missing userId"},
            404: {"description": "No license found for this user"},
        },
    )
    def get(self, request: Request) -> Response:
        """Get license key for a user."""
        return async_to_sync(self._handle_get_license)(request)

    async def _handle_get_license(self, request: Request) -> Response:
        """Async handler for get license."""
        with tracer.start_as_current_span("get_license") as span:
            span.set_attribute("operation", "get_license")
            data = validate_request(UserIdRequestSerializer, request.query_params)
            span.set_attribute("user_id", data["user_id"])

            handler = GetLicenseKeyHandler(entitlement_repository=get_entitlement_repository())
            result = await handler.handle(GetLicenseKeyQuery(user_id=data["user_id"]))

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseKeyResponseSerializer(result).data, status=status.HTTP_200_OK)


class VerifyLicenseView(APIView):
    """View for verifying a license key."""

    @extend_schema(
        operation_id="verify_license_query",
        summary="Verify License (query)",
        description="Check a license key against the stored one for a user.",
        tags=["License API"],
        parameters=[
            OpenApiParameter(name="userId", type=str, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="licenseKey", type=str, location=OpenApiParameter.QUERY, required=True),
        ],
        responses={200: VerifyLicenseResponseSerializer, 400: {"description": "Missing fields"}},
    )
    def get(self, request: Request) -> Response:
        """Verify a license key passed as query parameters."""
        return async_to_sync(self._handle_verify)(request, request.query_params)

    @extend_schema(
        operation_id="verify_license",
        summary="Verify License",
        description="Check a license key against the stored one for a user.",
        tags=["License API"],
        request=VerifyLicenseRequestSerializer,
        responses={200: VerifyLicenseResponseSerializer, 400: {"description": "Missing fields"}},
    )
    def post(self, request: Request) -> Response:
        """Verify a license key passed in the body."""
        return async_to_sync(self._handle_verify)(request, request.data)

    async def _handle_verify(self, request: Request, payload) -> Response:
        """Async handler for verify license."""
        with tracer.start_as_current_span("verify_license") as span:
            span.set_attribute("operation", "verify_license")
            data = validate_request(VerifyLicenseRequestSerializer, payload)
            span.set_attribute("user_id", data["user_id"])

            handler = VerifyLicenseHandler(entitlement_repository=get_entitlement_repository())
            result = await handler.handle(
                VerifyLicenseQuery(user_id=data["user_id"], license_key=data["license_key"])
            )

            span.set_attribute("license.valid", result.valid)
            span.set_status(Status(StatusCode.OK))
            return Response(VerifyLicenseResponseSerializer(result).data, status=status.HTTP_200_OK)


class VerifyProStatusView(APIView):
    """View for verifying Pro status against the live subscription."""

    @extend_schema(
        operation_id="verify_pro_status",
        summary="Verify Pro Status",
        description=(
            "Re-check the user's subscription with the billing provider and return "
            "the current plan. Provider failures fall back to the stored state."
        ),
        tags=["License API"],
        request=UserIdRequestSerializer,
        responses={200: ProStatusResponseSerializer, 400: {"description": "userId required"}},
    )
    def post(self, request: Request) -> Response:
        """Verify Pro status for a user."""
        return async_to_sync(self._handle_verify_pro_status)(request)

    async def _handle_verify_pro_status(self, request: Request) -> Response:
        """Async handler for verify Pro status."""
        with tracer.start_as_current_span("verify_pro_status") as span:
            span.set_attribute("operation", "verify_pro_status")
            data = validate_request(UserIdRequestSerializer, request.data)
            span.set_attribute("user_id", data["user_id"])

            handler = VerifyProStatusHandler(
                entitlement_repository=get_entitlement_repository(),
                billing_provider=get_billing_provider(),
            )
            result = await handler.handle(VerifyProStatusCommand(user_id=data["user_id"]))

            span.set_attribute("plan", result.plan)
            span.set_status(Status(StatusCode.OK))
            return Response(ProStatusResponseSerializer(result).data, status=status.HTTP_200_OK)
