"""
Notify types (intent profiles): named bundles of default send fields.
"""

import logging
import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional

from notify_gateway.notifications.exceptions import BadRequestError, ConflictError, NotFoundError
from notify_gateway.notifications.models import NotifyType, utc_now_iso
from notify_gateway.storage.notify_type_store import NotifyTypeStore


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "code", "send_as", "template_id", "identity_id",
    "renderer", "subject", "body", "params",
}


class NotifyTypesService:
    """CRUD over notify types; ``code`` is unique."""

    def __init__(self, store: NotifyTypeStore):
        self.store = store

    def get_notify_types(self) -> List[NotifyType]:
        return self.store.get_all()

    def get_notify_type(self, notify_type_id: str) -> NotifyType:
        notify_type = self.store.get_by_id(notify_type_id)
        if notify_type is None:
            raise NotFoundError("Notify type not found")
        return notify_type

    def get_by_code(self, code: str) -> Optional[NotifyType]:
        return self.store.get_by_code(code)

    def create_notify_type(
        self,
        code: str,
        send_as: Optional[str] = None,
        template_id: Optional[str] = None,
        identity_id: Optional[str] = None,
        renderer: Optional[str] = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> NotifyType:
        """
        Create a notify type.

        Raises:
            BadRequestError: If code is empty
            ConflictError: If another notify type already uses ``code``
        """
        if not code:
            raise BadRequestError("Notify type code is required")

        now = utc_now_iso()
        notify_type = NotifyType(
            id=str(uuid.uuid4()),
            code=code,
            send_as=send_as,
            template_id=template_id,
            identity_id=identity_id,
            renderer=renderer,
            subject=subject,
            body=body,
            params=dict(params or {}),
            created_at=now,
            updated_at=now,
        )

        with self.store.lock:
            if self.store.get_by_code(code) is not None:
                raise ConflictError(f'Notify type with code "{code}" already exists')
            self.store.set(notify_type.id, notify_type)

        logger.info(f"Created notify type: {notify_type.id} ({code})")
        return notify_type

    def update_notify_type(self, notify_type_id: str, **changes: Any) -> NotifyType:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown notify type fields: {', '.join(sorted(unknown))}")

        with self.store.lock:
            existing = self.store.get_by_id(notify_type_id)
            if existing is None:
                raise NotFoundError("Notify type not found")

            code = changes.get("code")
            if code is not None and code != existing.code:
                clash = self.store.get_by_code(code)
                if clash is not None and clash.id != notify_type_id:
                    raise ConflictError(f'Notify type with code "{code}" already exists')

            updated = replace(existing, **changes, updated_at=utc_now_iso())
            self.store.set(notify_type_id, updated)

        logger.info(f"Updated notify type: {notify_type_id}")
        return updated

    def delete_notify_type(self, notify_type_id: str) -> None:
        if not self.store.delete(notify_type_id):
            raise NotFoundError("Notify type not found")
        logger.info(f"Deleted notify type: {notify_type_id}")
