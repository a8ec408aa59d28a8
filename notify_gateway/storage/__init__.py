"""
Storage contracts and in-memory stores.
"""

from notify_gateway.storage.memory_store import KeyValueStore, InMemoryStore
from notify_gateway.storage.notify_type_store import NotifyTypeStore
from notify_gateway.storage.defaults_store import DefaultsStore

__all__ = [
    'KeyValueStore',
    'InMemoryStore',
    'NotifyTypeStore',
    'DefaultsStore',
]
