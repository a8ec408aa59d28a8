"""
Passthrough facade for external GC Notify compatible APIs.
"""

from notify_gateway.passthrough.gc_notify_client import GcNotifyApiClient, rewrite_notifications_link

__all__ = [
    'GcNotifyApiClient',
    'rewrite_notifications_link',
]
