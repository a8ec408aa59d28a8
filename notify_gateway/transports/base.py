"""
Transport contracts shared by every delivery provider.
"""

from typing import Protocol, runtime_checkable

from notify_gateway.notifications.models import EmailMessage, SendResult, SmsMessage


@runtime_checkable
class EmailTransport(Protocol):
    """Delivers one email; provider failures raise DeliveryError."""

    name: str

    def send(self, message: EmailMessage) -> SendResult:
        ...


@runtime_checkable
class SmsTransport(Protocol):
    """Delivers one SMS; provider failures raise DeliveryError."""

    name: str

    def send(self, message: SmsMessage) -> SendResult:
        ...
