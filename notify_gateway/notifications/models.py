"""
Data models for the notification gateway.
"""

from enum import Enum
from typing import Optional, Dict, Any, List, Union
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone


NOTIFICATIONS_URI = "/gc-notify/v2/notifications"
TEMPLATES_URI = "/gc-notify/v2/templates"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


class Channel(str, Enum):
    """Delivery channels."""
    EMAIL = "email"
    SMS = "sms"


class SenderType(str, Enum):
    """Channels a sender identity can be used for."""
    EMAIL = "email"
    SMS = "sms"
    EMAIL_SMS = "email+sms"

    def covers(self, channel: Union[Channel, str]) -> bool:
        """Check whether this sender type can send on ``channel``."""
        value = channel.value if isinstance(channel, Channel) else str(channel)
        return self is SenderType.EMAIL_SMS or self.value == value

    def intersects(self, other: 'SenderType') -> bool:
        """Check whether two sender types share at least one channel."""
        return any(self.covers(c) and other.covers(c) for c in Channel)

    @property
    def includes_email(self) -> bool:
        return self.covers(Channel.EMAIL)

    @property
    def includes_sms(self) -> bool:
        return self.covers(Channel.SMS)


class SendingMethod(str, Enum):
    """How a file attachment is delivered."""
    ATTACH = "attach"
    LINK = "link"


@dataclass
class TemplateDefinition:
    """Stored template."""
    id: str
    channel: Channel
    name: str
    body: str
    subject: Optional[str] = None
    description: Optional[str] = None
    personalisation: Optional[Dict[str, str]] = None
    active: bool = True
    engine: Optional[str] = None
    version: int = 1
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)
    created_by: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"{TEMPLATES_URI}/{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation (``channel`` is exposed as ``type``)."""
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.channel.value,
            "subject": self.subject,
            "body": self.body,
            "personalisation": self.personalisation,
            "active": self.active,
            "engine": self.engine,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
        })


@dataclass
class Sender:
    """Sender identity (reply-to address and/or SMS sender)."""
    id: str
    type: SenderType
    email_address: Optional[str] = None
    sms_sender: Optional[str] = None
    is_default: bool = False
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "type": self.type.value,
            "email_address": self.email_address,
            "sms_sender": self.sms_sender,
            "is_default": self.is_default,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        })

    def to_identity_dict(self) -> Dict[str, Any]:
        """Identity view used by the identities API."""
        return _drop_none({
            "id": self.id,
            "type": self.type.value,
            "emailAddress": self.email_address,
            "smsSender": self.sms_sender,
            "isDefault": self.is_default,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })


@dataclass(frozen=True)
class TextValue:
    """Plain string personalisation value."""
    value: str


@dataclass(frozen=True)
class FileAttachmentValue:
    """File attachment personalisation value with a base64 payload."""
    file: str
    filename: str
    sending_method: SendingMethod = SendingMethod.ATTACH


PersonalisationValue = Union[TextValue, FileAttachmentValue]


@dataclass(frozen=True)
class Attachment:
    """Decoded attachment handed to a transport."""
    filename: str
    content: bytes
    sending_method: SendingMethod = SendingMethod.ATTACH


@dataclass
class RenderedEmail:
    """Rendered email content."""
    subject: str
    body: str
    attachments: Optional[List[Attachment]] = None


@dataclass
class RenderedSms:
    """Rendered SMS content."""
    body: str


@dataclass(frozen=True)
class DeliveryContext:
    """Delivery policy fixed for the lifetime of one request."""
    email_adapter_key: str
    sms_adapter_key: str
    template_engine_default: str


@dataclass
class EmailMessage:
    """Email as handed to a transport."""
    to: str
    subject: str
    body: str
    from_address: str
    reply_to: Optional[str] = None
    attachments: Optional[List[Attachment]] = None


@dataclass
class SmsMessage:
    """SMS as handed to a transport."""
    to: str
    body: str
    from_number: str


@dataclass
class SendResult:
    """Uniform result returned by every transport."""
    message_id: str
    provider_response: Optional[Any] = None


@dataclass
class EmailRequest:
    """Request to send an email from a stored template."""
    template_id: str
    email_address: str
    personalisation: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[str] = None
    email_reply_to_id: Optional[str] = None
    scheduled_for: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none({**asdict(self), "personalisation": self.personalisation or None})


@dataclass
class SmsRequest:
    """Request to send an SMS from a stored template."""
    template_id: str
    phone_number: str
    personalisation: Dict[str, Any] = field(default_factory=dict)
    reference: Optional[str] = None
    sms_sender_id: Optional[str] = None
    scheduled_for: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return _drop_none({**asdict(self), "personalisation": self.personalisation or None})


@dataclass
class BulkRequest:
    """Bulk send request; ``rows`` (first row is the header) or raw ``csv``."""
    template_id: str
    name: str
    rows: Optional[List[List[str]]] = None
    csv: Optional[str] = None
    reference: Optional[str] = None
    scheduled_for: Optional[str] = None
    reply_to_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = _drop_none(asdict(self))
        if self.csv:
            payload.pop("rows", None)
        return payload


@dataclass
class TemplateLink:
    """Reference from a notification to the template version used."""
    id: str
    version: int

    @property
    def uri(self) -> str:
        return f"{TEMPLATES_URI}/{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "version": self.version, "uri": self.uri}


@dataclass
class NotificationResponse:
    """Receipt returned for a single send. Never persisted."""
    id: str
    content: Dict[str, Any]
    template: TemplateLink
    reference: Optional[str] = None
    scheduled_for: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"{NOTIFICATIONS_URI}/{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "reference": self.reference,
            "content": self.content,
            "uri": self.uri,
            "template": self.template.to_dict(),
            "scheduled_for": self.scheduled_for,
        })


@dataclass
class BulkJob:
    """Accepted bulk job."""
    id: str
    template: str
    notification_count: int
    job_status: str = "pending"
    created_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_response(self) -> Dict[str, Any]:
        return {"data": self.to_dict()}


@dataclass
class NotifyType:
    """Intent profile: named bundle of default send fields."""
    id: str
    code: str
    send_as: Optional[str] = None
    template_id: Optional[str] = None
    identity_id: Optional[str] = None
    renderer: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "code": self.code,
            "sendAs": self.send_as,
            "templateId": self.template_id,
            "identityId": self.identity_id,
            "renderer": self.renderer,
            "subject": self.subject,
            "body": self.body,
            "params": self.params,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        })


@dataclass
class TenantDefaults:
    """Process-wide fallback choices, overridable per request."""
    email_adapter: Optional[str] = None
    sms_adapter: Optional[str] = None
    email_identity_id: Optional[str] = None
    sms_identity_id: Optional[str] = None
    renderer: Optional[str] = None
    priority: Optional[str] = None
    encoding: Optional[str] = None
    body_type: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "emailAdapter": self.email_adapter,
            "smsAdapter": self.sms_adapter,
            "emailIdentityId": self.email_identity_id,
            "smsIdentityId": self.sms_identity_id,
            "renderer": self.renderer,
            "priority": self.priority,
            "encoding": self.encoding,
            "bodyType": self.body_type,
            "updatedAt": self.updated_at,
        })


@dataclass
class CommonOverride:
    """Channel-independent overrides of a notify send."""
    to: List[str] = field(default_factory=list)
    template_id: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)
    send_as: Optional[str] = None
    renderer: Optional[str] = None


@dataclass
class EmailOverride:
    """Email-specific overrides of a notify send."""
    email_identity_id: Optional[str] = None


@dataclass
class NotifyRequest:
    """Send-by-profile request."""
    notify_type: str
    common: CommonOverride = field(default_factory=CommonOverride)
    email: EmailOverride = field(default_factory=EmailOverride)


@dataclass
class MessageAssociation:
    """One message produced by a notify send."""
    msg_id: str
    channel: Channel
    to: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"msgId": self.msg_id, "channel": self.channel.value, "to": list(self.to)}


@dataclass
class NotifyResult:
    """Result of a notify send."""
    notify_id: str
    tx_id: str
    messages: List[MessageAssociation] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notifyId": self.notify_id,
            "txId": self.tx_id,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass
class Notification:
    """Notification as reported by the upstream service."""
    id: str
    template: TemplateLink
    type: Channel = Channel.EMAIL
    status: str = "created"
    body: str = ""
    created_at: str = field(default_factory=utc_now_iso)
    reference: Optional[str] = None
    email_address: Optional[str] = None
    phone_number: Optional[str] = None
    subject: Optional[str] = None
    status_description: Optional[str] = None
    provider_response: Optional[str] = None
    created_by_name: Optional[str] = None
    sent_at: Optional[str] = None
    completed_at: Optional[str] = None
    scheduled_for: Optional[str] = None

    @property
    def uri(self) -> str:
        return f"{NOTIFICATIONS_URI}/{self.id}"

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "reference": self.reference,
            "email_address": self.email_address,
            "phone_number": self.phone_number,
            "type": self.type.value,
            "status": self.status,
            "status_description": self.status_description,
            "provider_response": self.provider_response,
            "template": self.template.to_dict(),
            "body": self.body,
            "subject": self.subject,
            "created_at": self.created_at,
            "created_by_name": self.created_by_name,
            "sent_at": self.sent_at,
            "completed_at": self.completed_at,
            "scheduled_for": self.scheduled_for,
            "uri": self.uri,
        })


@dataclass
class NotificationPage:
    """Page of notifications with navigation links."""
    notifications: List[Notification] = field(default_factory=list)
    links: Dict[str, str] = field(default_factory=lambda: {"current": NOTIFICATIONS_URI})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notifications": [n.to_dict() for n in self.notifications],
            "links": dict(self.links),
        }
