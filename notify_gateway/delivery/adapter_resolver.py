"""
Maps the delivery context's transport keys to transports or passthrough targets.
"""

import logging
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Union

from notify_gateway.delivery.context import DeliveryContextService, normalize_adapter_key
from notify_gateway.notifications.exceptions import ConfigurationError
from notify_gateway.transports.base import EmailTransport, SmsTransport


logger = logging.getLogger(__name__)

PASSTHROUGH_SUFFIX = ":passthrough"
GC_NOTIFY_PROVIDER = "gc-notify"
CHES_PROVIDER = "ches"

EMAIL_FALLBACK_ORDER = ("nodemailer", "ches")
SMS_FALLBACK_ORDER = ("twilio",)


class AdapterMode(str, Enum):
    """How a transport key is served."""
    ADAPTER = "adapter"
    PASSTHROUGH = "passthrough"


class PassthroughTarget(str, Enum):
    """Sentinels for keys that forward to an external API instead of a transport."""
    GC_NOTIFY = "gc-notify"
    CHES = "ches"


def parse_adapter_key(key: Optional[str]) -> Tuple[str, AdapterMode]:
    """
    Split a transport key into (provider, mode).

    ``"gc-notify:passthrough"`` -> ``("gc-notify", PASSTHROUGH)``,
    ``"ches"`` -> ``("ches", ADAPTER)``.
    """
    normalized = normalize_adapter_key(key)
    if normalized.endswith(PASSTHROUGH_SUFFIX):
        return normalized[:-len(PASSTHROUGH_SUFFIX)], AdapterMode.PASSTHROUGH
    return normalized, AdapterMode.ADAPTER


def is_gc_notify_passthrough(key: Optional[str]) -> bool:
    """True for ``gc-notify`` and ``gc-notify:passthrough``."""
    provider, _ = parse_adapter_key(key)
    return provider == GC_NOTIFY_PROVIDER


class DeliveryAdapterResolver:
    """
    Resolves transports for the current request.

    Resolution is total: an unknown or empty key falls back to the channel's
    default transport instead of failing. Construction fails instead when a
    channel has no fallback transport registered.
    """

    def __init__(
        self,
        context_service: DeliveryContextService,
        email_transports: Dict[str, EmailTransport],
        sms_transports: Dict[str, SmsTransport],
    ):
        self.context_service = context_service
        self.email_transports = dict(email_transports)
        self.sms_transports = dict(sms_transports)

        self._email_fallback = self._pick_fallback(self.email_transports, EMAIL_FALLBACK_ORDER, "email")
        self._sms_fallback = self._pick_fallback(self.sms_transports, SMS_FALLBACK_ORDER, "sms")

    def resolve_email(self) -> Union[EmailTransport, PassthroughTarget]:
        """Transport or passthrough target for the request's email key."""
        key = self.context_service.get_email_adapter_key()
        return self.resolve_email_key(key)

    def resolve_sms(self) -> Union[SmsTransport, PassthroughTarget]:
        """Transport or passthrough target for the request's SMS key."""
        key = self.context_service.get_sms_adapter_key()
        return self.resolve_sms_key(key)

    def resolve_email_key(self, key: Optional[str]) -> Union[EmailTransport, PassthroughTarget]:
        provider, mode = parse_adapter_key(key)
        if provider == GC_NOTIFY_PROVIDER:
            return PassthroughTarget.GC_NOTIFY
        if mode == AdapterMode.PASSTHROUGH and provider == CHES_PROVIDER:
            return PassthroughTarget.CHES
        return self._lookup(self.email_transports, provider, self._email_fallback, "email")

    def resolve_sms_key(self, key: Optional[str]) -> Union[SmsTransport, PassthroughTarget]:
        provider, _ = parse_adapter_key(key)
        if provider == GC_NOTIFY_PROVIDER:
            return PassthroughTarget.GC_NOTIFY
        return self._lookup(self.sms_transports, provider, self._sms_fallback, "sms")

    @staticmethod
    def _lookup(transports: Dict, provider: str, fallback, channel: str):
        transport = transports.get(provider)
        if transport is None:
            logger.warning(
                f"No {channel} transport registered for '{provider}', using '{fallback.name}'"
            )
            return fallback
        return transport

    @staticmethod
    def _pick_fallback(transports: Dict, order: Sequence[str], channel: str):
        for name in order:
            if name in transports:
                return transports[name]
        raise ConfigurationError(
            f"No fallback {channel} transport registered. Register one of: {', '.join(order)}"
        )
