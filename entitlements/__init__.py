"""
Entitlements module - per-user plan, billing and license state.

This module handles:
- EntitlementRecord entity and the subscription reconciler
- License key issuance and verification
- Checkout, portal and webhook flows against the billing provider
- Background reconciliation of subscriptions
"""
