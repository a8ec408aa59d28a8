"""
Template resolution seam between the composer and the template store.
"""

from typing import Optional, Protocol, runtime_checkable

from notify_gateway.notifications.models import TemplateDefinition
from notify_gateway.storage.memory_store import KeyValueStore


@runtime_checkable
class TemplateResolver(Protocol):
    """Looks templates up by id; absence is ``None``, not an error."""

    def get_by_id(self, template_id: str) -> Optional[TemplateDefinition]:
        ...


class InMemoryTemplateResolver:
    """Resolves templates from the local template store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def get_by_id(self, template_id: str) -> Optional[TemplateDefinition]:
        return self.store.get_by_id(template_id)
