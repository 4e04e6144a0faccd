"""
License key generation and comparison.
"""

import secrets
import string
from datetime import datetime
from typing import Optional

from entitlements.domain.entitlement import utcnow

LICENSE_KEY_PREFIX = "dd"
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 12


def generate_license_key(now: Optional[datetime] = None, prefix: str = LICENSE_KEY_PREFIX) -> str:
    """
    Generate a license key in format: PREFIX_<epoch-ms>_<random suffix>.

    Args:
        now: Issue time used for the timestamp part
        prefix: Key prefix

    Returns:
        Generated license key string
    """
    issued_at = now or utcnow()
    millis = int(issued_at.timestamp() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{prefix}_{millis}_{suffix}"


def license_keys_match(stored: Optional[str], candidate: Optional[str]) -> bool:
    """
    Compare a stored license key with a candidate in constant time.

    Args:
        stored: Key on the entitlement record
        candidate: Key supplied by the client

    Returns:
        True if both are present and equal
    """
    if not stored or not candidate:
        return False
    return secrets.compare_digest(stored.encode(), candidate.encode())
