"""
Entitlement DTOs for API responses.
"""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class LicenseKeyDTO:
    """DTO for license lookup response."""

    license_key: str


@dataclass
class VerifyLicenseResultDTO:
    """DTO for license verification response."""

    valid: bool
    is_pro: bool


@dataclass
class ProStatusDTO:
    """DTO for live Pro status response."""

    valid: bool
    plan: str
    license_key: Optional[str] = None


@dataclass
class CheckoutSessionDTO:
    """DTO for checkout session response."""

    checkout_url: str
    session_id: str


@dataclass
class PortalSessionDTO:
    """DTO for customer portal session response."""

    portal_url: str


@dataclass
class LicenseCreationResultDTO:
    """DTO for auto-create and debug license creation responses."""

    success: bool
    license_key: Optional[str]
    message: str


@dataclass
class WebhookResultDTO:
    """DTO for webhook acknowledgement."""

    received: bool = True
    duplicate: bool = False


@dataclass
class EntitlementDTO:
    """DTO for an entitlement listing row."""

    user_id: str
    license_key: Optional[str]
    customer_id: Optional[str]
    subscription_id: Optional[str]
    plan: str
    status: str


@dataclass
class EntitlementListDTO:
    """DTO for entitlement listing response."""

    count: int
    licenses: List[EntitlementDTO]


@dataclass
class SweepReportDTO:
    """Outcome of a subscription sweep."""

    checked: int = 0
    changed: int = 0
    failed: int = 0
    changed_user_ids: List[str] = field(default_factory=list)
