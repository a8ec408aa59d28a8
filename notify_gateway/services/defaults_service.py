"""
Tenant defaults: process-wide fallbacks for adapter, identity and renderer.
"""

import logging
from typing import Any

from notify_gateway.notifications.exceptions import BadRequestError
from notify_gateway.notifications.models import TenantDefaults, utc_now_iso
from notify_gateway.storage.defaults_store import DefaultsStore


logger = logging.getLogger(__name__)

ALLOWED_VALUES = {
    "priority": {"high", "normal", "low"},
    "encoding": {"utf-8", "base64", "binary", "hex"},
    "body_type": {"html", "text"},
}

UPDATABLE_FIELDS = {
    "email_adapter", "sms_adapter", "email_identity_id", "sms_identity_id",
    "renderer", "priority", "encoding", "body_type",
}


class DefaultsService:
    """Reads and partially updates the tenant defaults profile."""

    def __init__(self, store: DefaultsStore):
        self.store = store

    def get_defaults(self) -> TenantDefaults:
        return self.store.get()

    def update_defaults(self, **changes: Any) -> TenantDefaults:
        """
        Merge a partial update and stamp ``updated_at``.

        Raises:
            BadRequestError: For unknown fields or out-of-range values
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown defaults fields: {', '.join(sorted(unknown))}")

        for field_name, allowed in ALLOWED_VALUES.items():
            value = changes.get(field_name)
            if value is not None and value not in allowed:
                raise BadRequestError(
                    f"Invalid {field_name}: {value}. Must be one of: {', '.join(sorted(allowed))}"
                )

        updated = self.store.merge(**changes, updated_at=utc_now_iso())
        logger.info(f"Updated tenant defaults: {sorted(changes)}")
        return updated
