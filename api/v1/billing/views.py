"""
Billing API views.

These endpoints are used by the extension and the billing provider to:
- Start a checkout and open the customer portal
- Create a license when the checkout webhook was missed
- Deliver webhook events
- Inspect and grant licenses in development
"""

from asgiref.sync import async_to_sync
from django.conf import settings
from django.http import Http404
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.billing.serializers import (
    AutoCreateLicenseRequestSerializer,
    CheckoutSessionResponseSerializer,
    DebugCreateLicenseRequestSerializer,
    EntitlementListResponseSerializer,
    LicenseCreationResponseSerializer,
    PortalSessionResponseSerializer,
    SessionRequestSerializer,
    WebhookResponseSerializer,
)
from api.v1.validation import validate_request
from core.instrumentation import Status, StatusCode, get_tracer
from entitlements.application.commands.auto_create_license import AutoCreateLicenseCommand
from entitlements.application.commands.billing_sessions import (
    CreateCheckoutSessionCommand,
    CreatePortalSessionCommand,
)
from entitlements.application.commands.debug_create_license import DebugCreateLicenseCommand
from entitlements.application.commands.process_webhook import ProcessWebhookCommand
from entitlements.application.handlers.auto_create_license_handler import (
    AutoCreateLicenseHandler,
)
from entitlements.application.handlers.billing_session_handlers import (
    CreateCheckoutSessionHandler,
    CreatePortalSessionHandler,
)
from entitlements.application.handlers.debug_create_license_handler import (
    DebugCreateLicenseHandler,
)
from entitlements.application.handlers.license_query_handlers import ListEntitlementsHandler
from entitlements.application.handlers.process_webhook_handler import ProcessWebhookHandler
from entitlements.application.queries.list_entitlements import ListEntitlementsQuery
from entitlements.infrastructure.wiring import (
    get_billing_provider,
    get_entitlement_repository,
    get_webhook_event_repository,
)

tracer = get_tracer(__name__)


class CreateCheckoutSessionView(APIView):
    """View for starting a subscription checkout."""

    @extend_schema(
        operation_id="create_checkout_session",
        summary="Create Checkout Session",
        description=(
            "Get or create the billing customer for the user and open a "
            "subscription checkout. Promotion codes are allowed."
        ),
        tags=["Billing API"],
        request=SessionRequestSerializer,
        responses={
            200: CheckoutSessionResponseSerializer,
            400: {"description": "Missing or invalid userId/clientId"},
            500: {"description": "Billing provider request failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a checkout session."""
        return async_to_sync(self._handle_checkout)(request)

    async def _handle_checkout(self, request: Request) -> Response:
        """Async handler for create checkout session."""
        with tracer.start_as_current_span("create_checkout_session") as span:
            span.set_attribute("operation", "create_checkout_session")
            data = validate_request(SessionRequestSerializer, request.data)
            span.set_attribute("user_id", data["user_id"])

            handler = CreateCheckoutSessionHandler(
                entitlement_repository=get_entitlement_repository(),
                billing_provider=get_billing_provider(),
                url_scheme=settings.EXTENSION_URL_SCHEME,
            )
            result = await handler.handle(
                CreateCheckoutSessionCommand(user_id=data["user_id"], client_id=data["client_id"])
            )

            span.set_attribute("checkout.session_id", result.session_id)
            span.set_status(Status(StatusCode.OK))
            return Response(CheckoutSessionResponseSerializer(result).data, status=status.HTTP_200_OK)


class CreatePortalSessionView(APIView):
    """View for opening the billing portal."""

    @extend_schema(
        operation_id="create_portal_session",
        summary="Create Portal Session",
        description="Open the billing provider's customer portal for the user.",
        tags=["Billing API"],
        request=SessionRequestSerializer,
        responses={
            200: PortalSessionResponseSerializer,
            400: {"description": "Missing or invalid userId/clientId"},
            404: {"description": "No active subscription found"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a portal session."""
        return async_to_sync(self._handle_portal)(request)

    async def _handle_portal(self, request: Request) -> Response:
        """Async handler for create portal session."""
        with tracer.start_as_current_span("create_portal_session") as span:
            span.set_attribute("operation", "create_portal_session")
            data = validate_request(SessionRequestSerializer, request.data)
            span.set_attribute("user_id", data["user_id"])

            handler = CreatePortalSessionHandler(
                entitlement_repository=get_entitlement_repository(),
                billing_provider=get_billing_provider(),
                url_scheme=settings.EXTENSION_URL_SCHEME,
            )
            result = await handler.handle(
                CreatePortalSessionCommand(user_id=data["user_id"], client_id=data["client_id"])
            )

            span.set_status(Status(StatusCode.OK))
            return Response(PortalSessionResponseSerializer(result).data, status=status.HTTP_200_OK)


class AutoCreateLicenseView(APIView):
    """View for creating a license from a completed checkout session."""

    @extend_schema(
        operation_id="auto_create_license",
        summary="Auto-create License",
        description=(
            "Fallback for a missed checkout webhook. Validates the checkout session "
            "and its subscription, then grants Pro. Safe to call repeatedly."
        ),
        tags=["Billing API"],
        request=AutoCreateLicenseRequestSerializer,
        responses={
            200: LicenseCreationResponseSerializer,
            400: {"description": "Payment not completed or subscription not active"},
            500: {"description": "Billing provider request failed"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a license from a checkout session."""
        return async_to_sync(self._handle_auto_create)(request)

    async def _handle_auto_create(self, request: Request) -> Response:
        """Async handler for auto-create license."""
        with tracer.start_as_current_span("auto_create_license") as span:
            span.set_attribute("operation", "auto_create_license")
            data = validate_request(AutoCreateLicenseRequestSerializer, request.data)
            span.set_attribute("user_id", data["user_id"])
            span.set_attribute("checkout.session_id", data["session_id"])

            handler = AutoCreateLicenseHandler(
                entitlement_repository=get_entitlement_repository(),
                billing_provider=get_billing_provider(),
            )
            result = await handler.handle(
                AutoCreateLicenseCommand(session_id=data["session_id"], user_id=data["user_id"])
            )

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseCreationResponseSerializer(result).data, status=status.HTTP_200_OK)


class WebhookView(APIView):
    """View receiving billing provider webhook events."""

    @extend_schema(
        operation_id="billing_webhook",
        summary="Billing Webhook",
        description=(
            "Receive a signed webhook event from the billing provider. The raw body "
            "is verified against the Stripe-Signature header before any processing."
        ),
        tags=["Billing API"],
        parameters=[
            OpenApiParameter(
                name="Stripe-Signature",
                type=str,
                location=OpenApiParameter.HEADER,
                required=True,
                description="Webhook signature",
            ),
        ],
        request={"application/json": {"type": "object"}},
        responses={
            200: WebhookResponseSerializer,
            400: {"description": "Invalid signature or payload"},
        },
    )
    def post(self, request: Request) -> Response:
        """Receive a webhook event."""
        return async_to_sync(self._handle_webhook)(request.body, request.headers.get("Stripe-Signature", ""))

    async def _handle_webhook(self, payload: bytes, signature: str) -> Response:
        """Async handler for webhook delivery."""
        with tracer.start_as_current_span("billing_webhook") as span:
            span.set_attribute("operation", "billing_webhook")

            handler = ProcessWebhookHandler(
                entitlement_repository=get_entitlement_repository(),
                webhook_event_repository=get_webhook_event_repository(),
                billing_provider=get_billing_provider(),
            )
            result = await handler.handle(ProcessWebhookCommand(payload=payload, signature=signature))

            span.set_attribute("webhook.duplicate", result.duplicate)
            span.set_status(Status(StatusCode.OK))
            return Response(WebhookResponseSerializer(result).data, status=status.HTTP_200_OK)


class DebugListLicensesView(APIView):
    """Development-only view listing every entitlement."""

    @extend_schema(
        operation_id="debug_list_licenses",
        summary="List Licenses (debug)",
        description="List every stored entitlement. Only available when DEBUG is on.",
        tags=["Debug"],
        responses={200: EntitlementListResponseSerializer, 404: {"description": "Not available"}},
    )
    def get(self, request: Request) -> Response:
        """List entitlements."""
        if not settings.DEBUG:
            raise Http404
        return async_to_sync(self._handle_list)()

    async def _handle_list(self) -> Response:
        handler = ListEntitlementsHandler(entitlement_repository=get_entitlement_repository())
        result = await handler.handle(ListEntitlementsQuery())
        return Response(EntitlementListResponseSerializer(result).data, status=status.HTTP_200_OK)


class DebugCreateLicenseView(APIView):
    """Development-only view granting a license from a billing customer."""

    @extend_schema(
        operation_id="debug_create_license",
        summary="Create License (debug)",
        description=(
            "Grant Pro from the customer's most recent subscription. "
            "Only available when DEBUG is on."
        ),
        tags=["Debug"],
        request=DebugCreateLicenseRequestSerializer,
        responses={
            200: LicenseCreationResponseSerializer,
            400: {"description": "Subscription not active"},
            404: {"description": "No subscription found, or not available"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a license from a customer id."""
        if not settings.DEBUG:
            raise Http404
        return async_to_sync(self._handle_create)(request)

    async def _handle_create(self, request: Request) -> Response:
        with tracer.start_as_current_span("debug_create_license") as span:
            data = validate_request(DebugCreateLicenseRequestSerializer, request.data)
            span.set_attribute("user_id", data["user_id"])

            handler = DebugCreateLicenseHandler(
                entitlement_repository=get_entitlement_repository(),
                billing_provider=get_billing_provider(),
            )
            result = await handler.handle(
                DebugCreateLicenseCommand(user_id=data["user_id"], customer_id=data["customer_id"])
            )

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseCreationResponseSerializer(result).data, status=status.HTTP_200_OK)
