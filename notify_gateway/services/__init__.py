"""
Management services over the in-memory stores.
"""

from notify_gateway.services.template_resolver import TemplateResolver, InMemoryTemplateResolver
from notify_gateway.services.templates_service import TemplatesService
from notify_gateway.services.sender_resolver import SenderResolver
from notify_gateway.services.senders_service import SendersService
from notify_gateway.services.identities_service import IdentitiesService
from notify_gateway.services.notify_types_service import NotifyTypesService
from notify_gateway.services.defaults_service import DefaultsService

__all__ = [
    'TemplateResolver',
    'InMemoryTemplateResolver',
    'TemplatesService',
    'SenderResolver',
    'SendersService',
    'IdentitiesService',
    'NotifyTypesService',
    'DefaultsService',
]
