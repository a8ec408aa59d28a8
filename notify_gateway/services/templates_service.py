"""
Template management: create, update, list and delete stored templates.
"""

import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from notify_gateway.notifications.exceptions import BadRequestError, NotFoundError
from notify_gateway.notifications.models import Channel, TemplateDefinition, utc_now_iso
from notify_gateway.storage.memory_store import InMemoryStore


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "name", "description", "channel", "subject", "body",
    "personalisation", "active", "engine",
}


def parse_channel(value: Union[Channel, str]) -> Channel:
    """Parse a channel name, raising BadRequestError for unknown values."""
    if isinstance(value, Channel):
        return value
    try:
        return Channel(str(value).lower())
    except ValueError:
        raise BadRequestError(f"Invalid template type: {value}. Must be one of: email, sms")


class TemplatesService:
    """
    CRUD over the template store.

    Every update bumps ``version`` and ``updated_at``. Updates run under the
    store lock so concurrent edits of one template never lose a version.
    """

    def __init__(self, store: InMemoryStore):
        self.store = store

    def list_templates(self, channel: Optional[Union[Channel, str]] = None) -> List[TemplateDefinition]:
        templates = self.store.get_all()
        if channel is not None:
            wanted = parse_channel(channel)
            templates = [t for t in templates if t.channel == wanted]
        return templates

    def get_templates(self, channel: Optional[Union[Channel, str]] = None) -> Dict[str, Any]:
        """Templates in the ``{"templates": [...]}`` wire shape."""
        logger.info("Getting templates list")
        return {"templates": [t.to_dict() for t in self.list_templates(channel)]}

    def get_template(self, template_id: str) -> TemplateDefinition:
        logger.info(f"Getting template: {template_id}")
        template = self.store.get_by_id(template_id)
        if template is None:
            raise NotFoundError("Template not found in database")
        return template

    def create_template(
        self,
        name: str,
        channel: Union[Channel, str],
        body: str,
        subject: Optional[str] = None,
        description: Optional[str] = None,
        personalisation: Optional[Dict[str, str]] = None,
        active: bool = True,
        engine: Optional[str] = None,
    ) -> TemplateDefinition:
        """
        Create a template at version 1.

        Returns:
            The stored TemplateDefinition
        """
        if not name:
            raise BadRequestError("Template name is required")
        if body is None:
            raise BadRequestError("Template body is required")

        now = utc_now_iso()
        template = TemplateDefinition(
            id=str(uuid.uuid4()),
            channel=parse_channel(channel),
            name=name,
            body=body,
            subject=subject,
            description=description,
            personalisation=personalisation,
            active=active,
            engine=engine,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self.store.set(template.id, template)
        logger.info(f"Created template: {template.id}")
        return template

    def update_template(self, template_id: str, **changes: Any) -> TemplateDefinition:
        """
        Merge ``changes`` into a template and bump its version.

        Raises:
            NotFoundError: If the template does not exist
            BadRequestError: If a change names an unknown field
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown template fields: {', '.join(sorted(unknown))}")
        if "channel" in changes:
            changes["channel"] = parse_channel(changes["channel"])

        with self.store.lock:
            existing = self.store.get_by_id(template_id)
            if existing is None:
                raise NotFoundError("Template not found in database")
            updated = replace(
                existing,
                **changes,
                version=existing.version + 1,
                updated_at=utc_now_iso(),
            )
            self.store.set(template_id, updated)

        logger.info(f"Updated template: {template_id} (version {updated.version})")
        return updated

    def delete_template(self, template_id: str) -> None:
        if not self.store.delete(template_id):
            raise NotFoundError("Template not found in database")
        logger.info(f"Deleted template: {template_id}")
