"""
Entitlement domain events.

Domain events represent something that happened in the entitlement domain.
"""

from dataclasses import dataclass
from typing import Any, Dict

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class EntitlementUpgraded(DomainEvent):
    """Event raised when a user moves from Basic to Pro."""

    user_id: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "user_id": self.user_id, "source": self.source}


@dataclass(frozen=True, kw_only=True)
class EntitlementDowngraded(DomainEvent):
    """Event raised when a user moves from Pro to Basic."""

    user_id: str
    status: str
    source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            **super().to_dict(),
            "user_id": self.user_id,
            "status": self.status,
            "source": self.source,
        }


@dataclass(frozen=True, kw_only=True)
class LicenseKeyIssued(DomainEvent):
    """Event raised when a license key is issued to a user."""

    user_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "user_id": self.user_id}
