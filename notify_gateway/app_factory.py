"""
Application factory for the notification gateway.

Provides a centralized way to create and configure the gateway
with dependency injection and clean component interfaces.
"""

import os
import logging
from typing import Optional, Dict, Any, Callable, Mapping, TypeVar

from notify_gateway.config import Settings, get_settings, reload_settings
from notify_gateway.delivery.adapter_resolver import DeliveryAdapterResolver
from notify_gateway.delivery.context import (
    DeliveryContextResolver, DeliveryContextService, delivery_scope
)
from notify_gateway.notifications.composer import NotificationComposer
from notify_gateway.notifications.notify_service import NotifyService
from notify_gateway.notifications.models import Sender, TemplateDefinition
from notify_gateway.passthrough.gc_notify_client import GcNotifyApiClient
from notify_gateway.rendering.registry import RendererRegistry, create_default_registry
from notify_gateway.services import (
    DefaultsService, IdentitiesService, InMemoryTemplateResolver, NotifyTypesService,
    SendersService, TemplatesService
)
from notify_gateway.storage import DefaultsStore, InMemoryStore, NotifyTypeStore
from notify_gateway.transports import (
    ChesEmailSender, CircuitBreaker, CircuitBreakerTransport, MailgunEmailSender,
    SmtpEmailSender, TwilioSmsSender
)
from notify_gateway.utils.logger import setup_logging, configure_third_party_loggers


T = TypeVar("T")

GC_NOTIFY_API_KEY_HEADER = "x-gc-notify-api-key"


def build_gc_notify_auth_header(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    """
    Build the upstream credential from the caller's API key header.

    Returns:
        ``"ApiKey-v1 <key>"`` or None when the header is absent or blank
    """
    for name, value in (headers or {}).items():
        if str(name).lower() == GC_NOTIFY_API_KEY_HEADER and isinstance(value, str) and value.strip():
            return f"ApiKey-v1 {value.strip()}"
    return None


class GatewayContainer:
    """
    Dependency injection container for the gateway components.

    Components are created on first access, so a container built for
    tests only constructs what the test touches.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize gateway container.

        Args:
            settings: Application settings (uses default if None)
        """
        self.settings = settings or get_settings()

        self._logger: Optional[logging.Logger] = None
        self._template_store: Optional[InMemoryStore[TemplateDefinition]] = None
        self._sender_store: Optional[InMemoryStore[Sender]] = None
        self._notify_type_store: Optional[NotifyTypeStore] = None
        self._defaults_store: Optional[DefaultsStore] = None
        self._templates_service: Optional[TemplatesService] = None
        self._senders_service: Optional[SendersService] = None
        self._identities_service: Optional[IdentitiesService] = None
        self._notify_types_service: Optional[NotifyTypesService] = None
        self._defaults_service: Optional[DefaultsService] = None
        self._registry: Optional[RendererRegistry] = None
        self._context_resolver: Optional[DeliveryContextResolver] = None
        self._context_service: Optional[DeliveryContextService] = None
        self._email_transports: Optional[Dict[str, Any]] = None
        self._sms_transports: Optional[Dict[str, Any]] = None
        self._adapter_resolver: Optional[DeliveryAdapterResolver] = None
        self._passthrough_client: Optional[GcNotifyApiClient] = None
        self._composer: Optional[NotificationComposer] = None
        self._notify_service: Optional[NotifyService] = None

    @property
    def logger(self) -> logging.Logger:
        """Get or create logger."""
        if self._logger is None:
            self._logger = self._create_logger()
        return self._logger

    # -- storage ----------------------------------------------------------

    @property
    def template_store(self) -> InMemoryStore[TemplateDefinition]:
        if self._template_store is None:
            self._template_store = InMemoryStore("templates")
        return self._template_store

    @property
    def sender_store(self) -> InMemoryStore[Sender]:
        """Shared by senders and identities."""
        if self._sender_store is None:
            self._sender_store = InMemoryStore("senders")
        return self._sender_store

    @property
    def notify_type_store(self) -> NotifyTypeStore:
        if self._notify_type_store is None:
            self._notify_type_store = NotifyTypeStore()
        return self._notify_type_store

    @property
    def defaults_store(self) -> DefaultsStore:
        if self._defaults_store is None:
            self._defaults_store = DefaultsStore()
        return self._defaults_store

    # -- services ---------------------------------------------------------

    @property
    def templates_service(self) -> TemplatesService:
        if self._templates_service is None:
            self._templates_service = TemplatesService(self.template_store)
        return self._templates_service

    @property
    def senders_service(self) -> SendersService:
        if self._senders_service is None:
            self._senders_service = SendersService(self.sender_store)
        return self._senders_service

    @property
    def identities_service(self) -> IdentitiesService:
        if self._identities_service is None:
            self._identities_service = IdentitiesService(self.sender_store)
        return self._identities_service

    @property
    def notify_types_service(self) -> NotifyTypesService:
        if self._notify_types_service is None:
            self._notify_types_service = NotifyTypesService(self.notify_type_store)
        return self._notify_types_service

    @property
    def defaults_service(self) -> DefaultsService:
        if self._defaults_service is None:
            self._defaults_service = DefaultsService(self.defaults_store)
        return self._defaults_service

    @property
    def registry(self) -> RendererRegistry:
        if self._registry is None:
            self._registry = create_default_registry(self.settings.delivery.default_template_engine.value)
        return self._registry

    # -- delivery ---------------------------------------------------------

    @property
    def context_resolver(self) -> DeliveryContextResolver:
        if self._context_resolver is None:
            delivery = self.settings.delivery
            self._context_resolver = DeliveryContextResolver(
                email_adapter=delivery.email_adapter,
                sms_adapter=delivery.sms_adapter,
                template_engine=delivery.default_template_engine.value,
                defaults_provider=self.defaults_service.get_defaults,
            )
        return self._context_resolver

    @property
    def context_service(self) -> DeliveryContextService:
        if self._context_service is None:
            self._context_service = DeliveryContextService()
        return self._context_service

    @property
    def email_transports(self) -> Dict[str, Any]:
        if self._email_transports is None:
            self._email_transports = self._create_email_transports()
        return self._email_transports

    @property
    def sms_transports(self) -> Dict[str, Any]:
        if self._sms_transports is None:
            self._sms_transports = self._create_sms_transports()
        return self._sms_transports

    @property
    def adapter_resolver(self) -> DeliveryAdapterResolver:
        if self._adapter_resolver is None:
            self._adapter_resolver = DeliveryAdapterResolver(
                self.context_service, self.email_transports, self.sms_transports
            )
        return self._adapter_resolver

    @property
    def passthrough_client(self) -> GcNotifyApiClient:
        if self._passthrough_client is None:
            gc_notify = self.settings.gc_notify
            self._passthrough_client = GcNotifyApiClient(
                base_url=gc_notify.base_url, timeout=gc_notify.timeout_seconds
            )
        return self._passthrough_client

    @property
    def composer(self) -> NotificationComposer:
        if self._composer is None:
            delivery = self.settings.delivery
            self._composer = NotificationComposer(
                adapter_resolver=self.adapter_resolver,
                context_service=self.context_service,
                passthrough_client=self.passthrough_client,
                template_resolver=InMemoryTemplateResolver(self.template_store),
                templates_service=self.templates_service,
                senders_service=self.senders_service,
                registry=self.registry,
                default_subject=delivery.default_subject,
                adapter_from_addresses=self.settings.adapter_from_addresses(),
                sms_from_number=self.settings.twilio.from_number,
                default_email_from=delivery.email_from,
                default_sms_from=delivery.sms_from_number,
            )
        return self._composer

    @property
    def notify_service(self) -> NotifyService:
        if self._notify_service is None:
            self._notify_service = NotifyService(
                adapter_resolver=self.adapter_resolver,
                identities_service=self.identities_service,
                notify_types_service=self.notify_types_service,
                defaults_service=self.defaults_service,
                composer=self.composer,
            )
        return self._notify_service

    def handle_request(
        self,
        headers: Optional[Mapping[str, str]],
        handler: Callable[..., T],
        *args: Any,
        **kwargs: Any
    ) -> T:
        """
        Run one request inside its delivery scope.

        Args:
            headers: Inbound request headers
            handler: Callable performing the request's work
            *args: Positional arguments for ``handler``
            **kwargs: Keyword arguments for ``handler``

        Returns:
            Whatever ``handler`` returns; exceptions propagate unchanged
        """
        context = self.context_resolver.resolve(headers)
        with delivery_scope(context):
            return handler(*args, **kwargs)

    def get_component_status(self) -> Dict[str, Any]:
        """
        Get status of the delivery transports.

        Returns:
            Component status dictionary
        """
        status = {'transports': {}}
        for channel, transports in (("email", self.email_transports), ("sms", self.sms_transports)):
            for key, transport in transports.items():
                breaker = getattr(transport, 'breaker', None)
                status['transports'][f"{channel}:{key}"] = (
                    breaker.get_status() if breaker else {'available': True}
                )
        return status

    def shutdown(self):
        """Release network resources."""
        if self._passthrough_client:
            self._passthrough_client.close()
        self.logger.info("Gateway shutdown complete")

    def _create_logger(self) -> logging.Logger:
        """Create and configure logger."""
        logging_config = {
            'level': self.settings.logging.level.value,
            'format': self.settings.logging.format,
            'enable_file_logging': self.settings.logging.enable_file_logging,
            'log_file': self.settings.logging.log_file,
            'max_bytes': self.settings.logging.max_bytes,
            'backup_count': self.settings.logging.backup_count,
            'enable_console_logging': self.settings.logging.enable_console_logging,
            'console_level': self.settings.logging.console_level.value,
            'enable_json_logging': self.settings.logging.enable_json_logging,
        }

        main_logger = setup_logging(logging_config)
        configure_third_party_loggers()
        return main_logger

    def _create_email_transports(self) -> Dict[str, Any]:
        """Create email transports for every configured provider."""
        smtp = self.settings.smtp
        transports: Dict[str, Any] = {
            "nodemailer": SmtpEmailSender(
                host=smtp.host,
                port=smtp.port,
                secure=smtp.secure,
                username=smtp.user,
                password=smtp.password,
                timeout=smtp.timeout_seconds,
            )
        }

        ches = self.settings.ches
        if ches.is_configured:
            transports["ches"] = ChesEmailSender(
                base_url=ches.base_url,
                token_url=ches.token_url,
                client_id=ches.client_id,
                client_secret=ches.client_secret,
                timeout=ches.timeout_seconds,
            )

        mailgun = self.settings.mailgun
        if mailgun.is_configured:
            transports["mailgun"] = MailgunEmailSender(
                api_key=mailgun.api_key,
                domain=mailgun.domain,
                base_url=mailgun.base_url,
                timeout=mailgun.timeout_seconds,
            )

        breakers = self.settings.circuit_breaker
        return self._wrap(transports, breakers.email_failure_threshold, breakers.email_timeout_seconds)

    def _create_sms_transports(self) -> Dict[str, Any]:
        """Create SMS transports."""
        twilio = self.settings.twilio
        transports = {
            "twilio": TwilioSmsSender(
                account_sid=twilio.account_sid,
                auth_token=twilio.auth_token,
                from_number=twilio.from_number or self.settings.delivery.sms_from_number,
            )
        }

        breakers = self.settings.circuit_breaker
        return self._wrap(transports, breakers.sms_failure_threshold, breakers.sms_timeout_seconds)

    def _wrap(self, transports: Dict[str, Any], failure_threshold: int, timeout_seconds: int) -> Dict[str, Any]:
        if not self.settings.circuit_breaker.enabled:
            return transports
        return {
            key: CircuitBreakerTransport(
                transport,
                CircuitBreaker(key, failure_threshold=failure_threshold, timeout_seconds=timeout_seconds),
            )
            for key, transport in transports.items()
        }


def create_app(environment: Optional[str] = None) -> GatewayContainer:
    """
    Convenience function to create the gateway.

    Args:
        environment: Environment name (development, production, testing)

    Returns:
        Configured GatewayContainer
    """
    if environment:
        os.environ['ENVIRONMENT'] = environment

    settings = reload_settings()
    container = GatewayContainer(settings)
    container.logger.info(f"{settings.app_name} {settings.app_version} created ({settings.environment.value})")
    return container
