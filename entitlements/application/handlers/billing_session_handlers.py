"""
Checkout and portal session handlers.
"""
import logging
import re
from typing import Optional

from core.domain.exceptions import NotFoundError, ValidationError
from entitlements.application.commands.billing_sessions import (
    CreateCheckoutSessionCommand,
    CreatePortalSessionCommand,
)
from entitlements.application.dto.entitlement_dto import CheckoutSessionDTO, PortalSessionDTO
from entitlements.domain.entitlement import EntitlementRecord
from entitlements.ports.billing_provider import BillingProvider
from entitlements.ports.entitlement_repository import EntitlementRepository

logger = logging.getLogger(__name__)

DEFAULT_URL_SCHEME = "chrome-extension"

# Extension ids are path-safe tokens
_CLIENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

# Placeholder substituted by the billing provider on redirect
CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def build_extension_url(client_id: str, page: str, scheme: str = DEFAULT_URL_SCHEME) -> str:
    """
    Build a URL pointing at a page inside the extension.

    Args:
        client_id: Extension id
        page: Page file name, e.g. ``pricing.html``
        scheme: URL scheme of the extension runtime

    Returns:
        URL such as ``chrome-extension://<client_id>/pricing.html``

    Raises:
        ValidationError: If the client id is missing or not a plain token
    """
    if not client_id:
        raise ValidationError("Missing clientId")
    if not _CLIENT_ID_PATTERN.match(client_id):
        raise ValidationError("Invalid clientId")
    return f"{scheme}://{client_id}/{page}"


class CreateCheckoutSessionHandler:
    """Handler for CreateCheckoutSessionCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        billing_provider: BillingProvider,
        url_scheme: str = DEFAULT_URL_SCHEME,
    ):
        """Initialize handler with repository and billing provider."""
        self.entitlement_repository = entitlement_repository
        self.billing_provider = billing_provider
        self.url_scheme = url_scheme

    async def handle(self, command: CreateCheckoutSessionCommand) -> CheckoutSessionDTO:
        """
        Handle create checkout session command.

        Gets or creates the billing customer, records it on the user's
        entitlement, then opens a subscription checkout.

        Args:
            command: CreateCheckoutSessionCommand

        Returns:
            CheckoutSessionDTO with the hosted checkout URL

        Raises:
            ValidationError: If user id or client id is missing or invalid
            UpstreamError: If the billing provider call fails
        """
        if not command.user_id:
            raise ValidationError("Missing userId")
        cancel_url = build_extension_url(command.client_id, "pricing.html", self.url_scheme)
        success_url = f"{cancel_url}?success=true&session_id={CHECKOUT_SESSION_PLACEHOLDER}"

        customer_id = await self._get_or_create_customer(command.user_id)

        link = await self.billing_provider.create_checkout_session(
            customer_id=customer_id,
            user_id=command.user_id,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        logger.info(
            "Checkout session %s created for user %s",
            link.id,
            command.user_id,
            extra={"user_id": command.user_id, "customer_id": customer_id},
        )
        return CheckoutSessionDTO(checkout_url=link.url, session_id=link.id)

    async def _get_or_create_customer(self, user_id: str) -> str:
        existing = await self.entitlement_repository.find_by_user_id(user_id)
        if existing is not None and existing.billing_customer_id:
            return existing.billing_customer_id

        created_id = await self.billing_provider.create_customer(user_id)

        def attach_customer(current: Optional[EntitlementRecord]) -> EntitlementRecord:
            record = current or EntitlementRecord.create(user_id=user_id)
            # A concurrent checkout may have attached a customer already
            if record.billing_customer_id:
                return record
            return record.merge({"billing_customer_id": created_id})

        record = await self.entitlement_repository.update(user_id, attach_customer)
        return record.billing_customer_id


class CreatePortalSessionHandler:
    """Handler for CreatePortalSessionCommand."""

    def __init__(
        self,
        entitlement_repository: EntitlementRepository,
        billing_provider: BillingProvider,
        url_scheme: str = DEFAULT_URL_SCHEME,
    ):
        self.entitlement_repository = entitlement_repository
        self.billing_provider = billing_provider
        self.url_scheme = url_scheme

    async def handle(self, command: CreatePortalSessionCommand) -> PortalSessionDTO:
        """
        Handle create portal session command.

        Args:
            command: CreatePortalSessionCommand

        Returns:
            PortalSessionDTO with the hosted portal URL

        Raises:
            ValidationError: If user id or client id is missing or invalid
            NotFoundError: If the user has no billing customer
            UpstreamError: If the billing provider call fails
        """
        if not command.user_id:
            raise ValidationError("Missing userId")
        return_url = build_extension_url(command.client_id, "options.html", self.url_scheme)

        record = await self.entitlement_repository.find_by_user_id(command.user_id)
        if record is None or not record.billing_customer_id:
            raise NotFoundError("No active subscription found", code="CUSTOMER_NOT_FOUND")

        link = await self.billing_provider.create_portal_session(
            customer_id=record.billing_customer_id,
            return_url=return_url,
        )
        return PortalSessionDTO(portal_url=link.url)
