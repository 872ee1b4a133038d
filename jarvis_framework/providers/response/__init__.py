"""
Response generator implementations.
"""

from .webhook_relay import WebhookResponseProvider

__all__ = ['WebhookResponseProvider']
