"""
Notification composer.

Orchestrates a single send: resolves the transport for the current delivery
context, looks up and validates the template, renders it with the selected
engine, picks the sender identity and hands the message to the transport.
GC Notify passthrough requests are forwarded to the upstream API instead.
"""

import logging
import uuid
from typing import Optional, Dict, Any, List, Sequence, Tuple, Union

from notify_gateway.delivery.adapter_resolver import (
    DeliveryAdapterResolver, PassthroughTarget, is_gc_notify_passthrough
)
from notify_gateway.delivery.context import DeliveryContextService
from notify_gateway.notifications.exceptions import (
    BadRequestError, ChannelMismatchError, InvalidStateError, NotFoundError,
    UnauthorizedError, UnsupportedError
)
from notify_gateway.notifications.models import (
    BulkJob, BulkRequest, Channel, EmailMessage, EmailRequest, Notification,
    NotificationPage, NotificationResponse, RenderedEmail, Sender, SmsMessage, SmsRequest,
    TemplateDefinition, TemplateLink
)
from notify_gateway.passthrough.gc_notify_client import GcNotifyApiClient
from notify_gateway.rendering.personalisation import (
    normalize_personalisation, string_personalisation
)
from notify_gateway.rendering.registry import RendererRegistry
from notify_gateway.services.sender_resolver import SenderResolver
from notify_gateway.services.senders_service import SendersService
from notify_gateway.services.template_resolver import TemplateResolver
from notify_gateway.services.templates_service import TemplatesService
from notify_gateway.transports.base import EmailTransport


logger = logging.getLogger(__name__)

BULK_MAX_RECIPIENTS = 50000

DEFAULT_EMAIL_FROM = "noreply@localhost"
DEFAULT_SMS_FROM = "+15551234567"


def validate_template(template: Optional[TemplateDefinition], template_id: str, channel: Channel) -> TemplateDefinition:
    """
    Check that a resolved template can be sent on ``channel``.

    Raises:
        NotFoundError: If the template does not exist
        InvalidStateError: If the template is inactive
        ChannelMismatchError: If the template belongs to another channel
    """
    if template is None:
        raise NotFoundError(f"Template {template_id} not found")
    if not template.active:
        raise InvalidStateError(f"Template {template_id} is inactive")
    if template.channel != channel:
        label = "an SMS" if channel == Channel.SMS else "an email"
        raise ChannelMismatchError(
            f"Template {template_id} is not {label} template",
            expected=channel.value,
            actual=template.channel.value,
        )
    return template


def count_bulk_rows(request: BulkRequest) -> int:
    """Recipient count of a bulk request; the first row is the header."""
    if request.rows is not None:
        return len(request.rows) - 1
    return len(request.csv.split("\n")) - 1


class NotificationComposer:
    """
    Sends notifications through the transport chosen for the current request.

    Must be called inside a delivery scope (see
    ``notify_gateway.delivery.context.delivery_scope``).
    """

    def __init__(
        self,
        adapter_resolver: DeliveryAdapterResolver,
        context_service: DeliveryContextService,
        passthrough_client: GcNotifyApiClient,
        template_resolver: TemplateResolver,
        templates_service: TemplatesService,
        senders_service: SendersService,
        registry: RendererRegistry,
        default_subject: Optional[str] = None,
        adapter_from_addresses: Optional[Dict[str, str]] = None,
        sms_from_number: Optional[str] = None,
        default_email_from: str = DEFAULT_EMAIL_FROM,
        default_sms_from: str = DEFAULT_SMS_FROM,
    ):
        """
        Initialize composer.

        Args:
            adapter_resolver: Resolves transports for the current request
            context_service: Accessors over the current delivery context
            passthrough_client: Client used for GC Notify passthrough
            template_resolver: Template lookup seam
            templates_service: Local template management (listing)
            senders_service: Sender management and resolution
            registry: Template renderer registry
            default_subject: Subject used when a template has none
            adapter_from_addresses: From-address configured per email adapter key
            sms_from_number: Configured SMS from-number
            default_email_from: Last-resort email from-address
            default_sms_from: Last-resort SMS from-number
        """
        self.adapter_resolver = adapter_resolver
        self.context_service = context_service
        self.passthrough_client = passthrough_client
        self.template_resolver = template_resolver
        self.templates_service = templates_service
        self.senders_service = senders_service
        self.registry = registry
        self.default_subject = default_subject
        self.adapter_from_addresses = dict(adapter_from_addresses or {})
        self.sms_from_number = sms_from_number
        self.default_email_from = default_email_from
        self.default_sms_from = default_sms_from

    def send_email(self, request: EmailRequest, auth_header: Optional[str] = None) -> NotificationResponse:
        """
        Send an email from a stored template.

        Args:
            request: Email send request
            auth_header: Caller's upstream credential (passthrough only)

        Returns:
            NotificationResponse receipt
        """
        transport = self.adapter_resolver.resolve_email()

        if transport is PassthroughTarget.CHES:
            raise UnsupportedError(
                "CHES passthrough is not yet implemented. Use X-Delivery-Email-Adapter: ches for direct CHES."
            )
        if transport is PassthroughTarget.GC_NOTIFY:
            self._require_credential(auth_header)
            return self.passthrough_client.send_email(request, auth_header)

        notification_id = str(uuid.uuid4())
        logger.info(f"Creating email notification: {notification_id} to {request.email_address}")

        template, rendered, from_email = self.deliver_email(
            transport,
            template_id=request.template_id,
            to=request.email_address,
            personalisation=request.personalisation,
            sender_id=request.email_reply_to_id,
            sender_resolver=self.senders_service.resolver,
        )

        return NotificationResponse(
            id=notification_id,
            reference=request.reference,
            content={
                "from_email": from_email,
                "body": rendered.body,
                "subject": rendered.subject,
            },
            template=TemplateLink(id=template.id, version=template.version),
            scheduled_for=request.scheduled_for,
        )

    def send_sms(self, request: SmsRequest, auth_header: Optional[str] = None) -> NotificationResponse:
        """
        Send an SMS from a stored template.

        Args:
            request: SMS send request
            auth_header: Caller's upstream credential (passthrough only)

        Returns:
            NotificationResponse receipt
        """
        transport = self.adapter_resolver.resolve_sms()

        if transport is PassthroughTarget.GC_NOTIFY:
            self._require_credential(auth_header)
            return self.passthrough_client.send_sms(request, auth_header)

        notification_id = str(uuid.uuid4())
        logger.info(f"Creating SMS notification: {notification_id} to {request.phone_number}")

        template = validate_template(
            self.template_resolver.get_by_id(request.template_id), request.template_id, Channel.SMS
        )
        personalisation = string_personalisation(normalize_personalisation(request.personalisation))

        renderer = self.registry.get_renderer(template.engine or self.context_service.get_template_engine_default())
        rendered = renderer.render_sms(template, personalisation)

        sender = self.senders_service.resolver.resolve_for_channel(request.sms_sender_id, Channel.SMS)
        from_number = (sender.sms_sender if sender else None) or self.sms_from_number or self.default_sms_from

        transport.send(SmsMessage(to=request.phone_number, body=rendered.body, from_number=from_number))

        return NotificationResponse(
            id=notification_id,
            reference=request.reference,
            content={
                "body": rendered.body,
                "from_number": from_number,
            },
            template=TemplateLink(id=template.id, version=template.version),
            scheduled_for=request.scheduled_for,
        )

    def send_bulk(self, request: BulkRequest, auth_header: Optional[str] = None) -> BulkJob:
        """
        Accept a bulk send job.

        Raises:
            BadRequestError: If neither rows nor csv are given, or the
                recipient count is outside 1..50,000
        """
        if self._use_passthrough(auth_header):
            return self.passthrough_client.send_bulk(request, auth_header)

        if request.rows is None and not request.csv:
            raise BadRequestError("You should specify either rows or csv")

        row_count = count_bulk_rows(request)
        if row_count < 1:
            raise BadRequestError(
                "rows must have at least a header row and one data row (1-50,000 recipients)"
            )
        if row_count > BULK_MAX_RECIPIENTS:
            raise BadRequestError(
                f"Too many rows. Maximum number of rows allowed is {BULK_MAX_RECIPIENTS}"
            )

        job = BulkJob(id=str(uuid.uuid4()), template=request.template_id, notification_count=row_count)
        logger.info(f"Creating bulk job: {job.id} with {row_count} recipients")
        return job

    def get_templates(
        self,
        template_type: Optional[Union[Channel, str]] = None,
        auth_header: Optional[str] = None
    ) -> List[TemplateDefinition]:
        if self._use_passthrough(auth_header):
            return self.passthrough_client.get_templates(template_type, auth_header)
        return self.templates_service.list_templates(template_type)

    def get_template(self, template_id: str, auth_header: Optional[str] = None) -> TemplateDefinition:
        if self._use_passthrough(auth_header):
            return self.passthrough_client.get_template(template_id, auth_header)
        return self.templates_service.get_template(template_id)

    def get_notifications(
        self,
        query: Optional[Dict[str, Any]] = None,
        auth_header: Optional[str] = None
    ) -> NotificationPage:
        """List notifications; local mode keeps no history and returns an empty page."""
        if self._use_passthrough(auth_header):
            return self.passthrough_client.get_notifications(query, auth_header)
        logger.info(f"Getting notifications list: {query or {}}")
        return NotificationPage()

    def get_notification_by_id(self, notification_id: str, auth_header: Optional[str] = None) -> Notification:
        if self._use_passthrough(auth_header):
            return self.passthrough_client.get_notification_by_id(notification_id, auth_header)
        logger.info(f"Getting notification: {notification_id}")
        raise NotFoundError("Notification not found in database")

    def deliver_email(
        self,
        transport: EmailTransport,
        template_id: str,
        to: str,
        personalisation: Optional[Dict[str, Any]],
        sender_id: Optional[str],
        sender_resolver: SenderResolver,
        engine_overrides: Sequence[Optional[str]] = (),
    ) -> Tuple[TemplateDefinition, RenderedEmail, str]:
        """
        Validate, render and send one email through a resolved transport.

        Args:
            transport: Email transport for the current request
            template_id: Stored template id
            to: Recipient address
            personalisation: Raw personalisation values
            sender_id: Explicit sender or identity id, if any
            sender_resolver: Resolver for the sender or identity view
            engine_overrides: Engines tried after the template's own engine
                and before the context default

        Returns:
            (template, rendered email, from-address)
        """
        template = validate_template(self.template_resolver.get_by_id(template_id), template_id, Channel.EMAIL)

        engine = next((e for e in (template.engine, *engine_overrides) if e), None)
        engine = engine or self.context_service.get_template_engine_default()

        renderer = self.registry.get_renderer(engine)
        rendered = renderer.render_email(template, normalize_personalisation(personalisation), self.default_subject)

        sender = sender_resolver.resolve_for_channel(sender_id, Channel.EMAIL)
        from_email = self.resolve_email_from(sender)

        transport.send(EmailMessage(
            to=to,
            subject=rendered.subject,
            body=rendered.body,
            from_address=from_email,
            reply_to=sender.email_address if sender else None,
            attachments=rendered.attachments,
        ))
        return template, rendered, from_email

    def resolve_email_from(self, sender: Optional[Sender]) -> str:
        """From-address: sender, then the active adapter's address, then the default."""
        if sender and sender.email_address:
            return sender.email_address
        adapter_key = self.context_service.get_email_adapter_key()
        return self.adapter_from_addresses.get(adapter_key) or self.default_email_from

    def _use_passthrough(self, auth_header: Optional[str]) -> bool:
        if not auth_header:
            return False
        return (
            is_gc_notify_passthrough(self.context_service.get_email_adapter_key())
            or is_gc_notify_passthrough(self.context_service.get_sms_adapter_key())
        )

    @staticmethod
    def _require_credential(auth_header: Optional[str]) -> None:
        if not auth_header:
            raise UnauthorizedError(
                "X-GC-Notify-Api-Key header is required when using GC Notify passthrough"
            )
