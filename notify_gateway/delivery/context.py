"""
Request-scoped delivery context.

The delivery context is resolved once per inbound request and stored in a
``contextvars.ContextVar`` so every component in the request's call graph
can read it without passing it around. Each thread and asyncio task sees
only its own value, and the scope resets on exit even when the request
fails.
"""

import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from notify_gateway.notifications.exceptions import ConfigurationError
from notify_gateway.notifications.models import DeliveryContext, TenantDefaults


logger = logging.getLogger(__name__)

T = TypeVar("T")

EMAIL_ADAPTER_HEADER = "x-delivery-email-adapter"
SMS_ADAPTER_HEADER = "x-delivery-sms-adapter"

VALID_EMAIL_ADAPTER_KEYS = frozenset({
    "nodemailer", "ches", "gc-notify:passthrough", "ches:passthrough",
})
VALID_SMS_ADAPTER_KEYS = frozenset({"twilio", "gc-notify:passthrough"})

DEFAULT_EMAIL_ADAPTER = "nodemailer"
DEFAULT_SMS_ADAPTER = "twilio"
DEFAULT_TEMPLATE_ENGINE = "jinja2"

_current_context: contextvars.ContextVar[Optional[DeliveryContext]] = contextvars.ContextVar(
    "delivery_context", default=None
)


@contextmanager
def delivery_scope(context: DeliveryContext) -> Iterator[DeliveryContext]:
    """Attach ``context`` for the duration of the ``with`` block."""
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)


def run_in_delivery_scope(context: DeliveryContext, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Call ``func`` with ``context`` attached."""
    with delivery_scope(context):
        return func(*args, **kwargs)


def get_delivery_context() -> DeliveryContext:
    """
    Get the context attached to the current request.

    Raises:
        ConfigurationError: If called outside a delivery scope
    """
    context = _current_context.get()
    if context is None:
        raise ConfigurationError(
            "DeliveryContext is not set. Resolve it with DeliveryContextResolver "
            "and run the request inside delivery_scope()."
        )
    return context


class DeliveryContextService:
    """Read-only accessors over the current delivery context."""

    def get_context(self) -> DeliveryContext:
        return get_delivery_context()

    def get_email_adapter_key(self) -> str:
        return get_delivery_context().email_adapter_key

    def get_sms_adapter_key(self) -> str:
        return get_delivery_context().sms_adapter_key

    def get_template_engine_default(self) -> str:
        return get_delivery_context().template_engine_default


class DeliveryContextResolver:
    """
    Decides the delivery policy for one request.

    Priority, independently per channel: an allow-listed header override,
    then the stored tenant default, then static configuration, then the
    hard-coded adapter.
    """

    def __init__(
        self,
        email_adapter: Optional[str] = None,
        sms_adapter: Optional[str] = None,
        template_engine: Optional[str] = None,
        defaults_provider: Optional[Callable[[], TenantDefaults]] = None,
    ):
        """
        Initialize resolver.

        Args:
            email_adapter: Configured email adapter key
            sms_adapter: Configured SMS adapter key
            template_engine: Configured default template engine
            defaults_provider: Callable returning current tenant defaults
        """
        self.email_adapter = normalize_adapter_key(email_adapter) or DEFAULT_EMAIL_ADAPTER
        self.sms_adapter = normalize_adapter_key(sms_adapter) or DEFAULT_SMS_ADAPTER
        self.template_engine = template_engine or DEFAULT_TEMPLATE_ENGINE
        self.defaults_provider = defaults_provider

    def resolve(self, headers: Optional[Mapping[str, str]] = None) -> DeliveryContext:
        """
        Resolve the delivery context from request headers.

        Args:
            headers: Request headers (names are matched case-insensitively)

        Returns:
            DeliveryContext for this request
        """
        normalized = {str(k).lower(): v for k, v in (headers or {}).items()}
        defaults = self.defaults_provider() if self.defaults_provider else TenantDefaults()

        context = DeliveryContext(
            email_adapter_key=self._pick(
                normalized.get(EMAIL_ADAPTER_HEADER),
                defaults.email_adapter,
                self.email_adapter,
                VALID_EMAIL_ADAPTER_KEYS,
            ),
            sms_adapter_key=self._pick(
                normalized.get(SMS_ADAPTER_HEADER),
                defaults.sms_adapter,
                self.sms_adapter,
                VALID_SMS_ADAPTER_KEYS,
            ),
            template_engine_default=self.template_engine,
        )
        logger.debug(
            f"Delivery context resolved: email={context.email_adapter_key} "
            f"sms={context.sms_adapter_key} engine={context.template_engine_default}"
        )
        return context

    @staticmethod
    def _pick(override: Optional[str], tenant_default: Optional[str], configured: str, allowed: frozenset) -> str:
        for candidate in (override, tenant_default):
            key = normalize_adapter_key(candidate)
            if key and key in allowed:
                return key
        return configured


def normalize_adapter_key(value: Optional[str]) -> str:
    """Trim and lowercase an adapter key; None becomes an empty string."""
    return value.strip().lower() if isinstance(value, str) else ""
