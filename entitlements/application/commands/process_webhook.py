"""
ProcessWebhookCommand.
"""
from dataclasses import dataclass


@dataclass
class ProcessWebhookCommand:
    """Command carrying a raw webhook delivery."""

    payload: bytes
    signature: str
