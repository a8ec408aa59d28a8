"""
Per-request delivery policy: context resolution and transport selection.
"""

from notify_gateway.delivery.context import (
    DeliveryContextResolver,
    DeliveryContextService,
    delivery_scope,
    run_in_delivery_scope,
    get_delivery_context,
    VALID_EMAIL_ADAPTER_KEYS,
    VALID_SMS_ADAPTER_KEYS,
)
from notify_gateway.delivery.adapter_resolver import (
    DeliveryAdapterResolver,
    PassthroughTarget,
    AdapterMode,
    parse_adapter_key,
    is_gc_notify_passthrough,
)

__all__ = [
    'DeliveryContextResolver',
    'DeliveryContextService',
    'delivery_scope',
    'run_in_delivery_scope',
    'get_delivery_context',
    'VALID_EMAIL_ADAPTER_KEYS',
    'VALID_SMS_ADAPTER_KEYS',
    'DeliveryAdapterResolver',
    'PassthroughTarget',
    'AdapterMode',
    'parse_adapter_key',
    'is_gc_notify_passthrough',
]
