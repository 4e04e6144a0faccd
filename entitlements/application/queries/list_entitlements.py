"""
ListEntitlementsQuery.
"""
from dataclasses import dataclass


@dataclass
class ListEntitlementsQuery:
    """Query to list every stored entitlement."""
