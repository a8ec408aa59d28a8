"""
Notification domain: models, errors and the send orchestration.

The composer and notify service are imported from their modules directly
(``notify_gateway.notifications.composer``) since they depend on the
rendering, delivery and services packages.
"""

from notify_gateway.notifications.exceptions import (
    NotificationError,
    NotFoundError,
    InvalidStateError,
    ChannelMismatchError,
    BadRequestError,
    TemplateRenderError,
    UnknownEngineError,
    UnauthorizedError,
    ConflictError,
    UnsupportedError,
    RateLimitError,
    UpstreamError,
    DeliveryError,
    ConfigurationError,
    to_error_response,
)
from notify_gateway.notifications.models import (
    Channel,
    SenderType,
    SendingMethod,
    TemplateDefinition,
    Sender,
    DeliveryContext,
    EmailMessage,
    SmsMessage,
    SendResult,
    EmailRequest,
    SmsRequest,
    BulkRequest,
    BulkJob,
    NotificationResponse,
    Notification,
    NotificationPage,
    NotifyType,
    NotifyRequest,
    NotifyResult,
    TenantDefaults,
)

__all__ = [
    'NotificationError',
    'NotFoundError',
    'InvalidStateError',
    'ChannelMismatchError',
    'BadRequestError',
    'TemplateRenderError',
    'UnknownEngineError',
    'UnauthorizedError',
    'ConflictError',
    'UnsupportedError',
    'RateLimitError',
    'UpstreamError',
    'DeliveryError',
    'ConfigurationError',
    'to_error_response',
    'Channel',
    'SenderType',
    'SendingMethod',
    'TemplateDefinition',
    'Sender',
    'DeliveryContext',
    'EmailMessage',
    'SmsMessage',
    'SendResult',
    'EmailRequest',
    'SmsRequest',
    'BulkRequest',
    'BulkJob',
    'NotificationResponse',
    'Notification',
    'NotificationPage',
    'NotifyType',
    'NotifyRequest',
    'NotifyResult',
    'TenantDefaults',
]
