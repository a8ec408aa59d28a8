"""
Sender management with the single-default-per-channel invariant.
"""

import logging
import uuid
from dataclasses import replace
from typing import Any, List, Optional, Union

from notify_gateway.notifications.exceptions import BadRequestError, NotFoundError
from notify_gateway.notifications.models import Channel, Sender, SenderType, utc_now_iso
from notify_gateway.services.sender_resolver import SenderResolver
from notify_gateway.storage.memory_store import InMemoryStore


logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"type", "email_address", "sms_sender", "is_default"}


def parse_sender_type(value: Union[SenderType, str]) -> SenderType:
    if isinstance(value, SenderType):
        return value
    try:
        return SenderType(str(value).lower())
    except ValueError:
        raise BadRequestError(f"Invalid sender type: {value}. Must be one of: email, sms, email+sms")


class SendersService:
    """
    CRUD over the sender store.

    Whenever a create or update leaves a sender as default, every other
    default whose type shares a channel with it is cleared, including
    when an existing default changes type. The clear and the write happen
    under the store lock, so concurrent requests cannot leave two defaults
    for one channel.
    """

    label = "Sender"

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.resolver = SenderResolver(store, self.label)

    def get_senders(self, sender_type: Optional[Union[SenderType, str]] = None) -> List[Sender]:
        senders = self.store.get_all()
        if sender_type is not None:
            wanted = parse_sender_type(sender_type)
            senders = [s for s in senders if s.type in (wanted, SenderType.EMAIL_SMS)]
        return senders

    def find_by_id(self, sender_id: str) -> Optional[Sender]:
        return self.store.get_by_id(sender_id)

    def get_sender(self, sender_id: str) -> Sender:
        sender = self.store.get_by_id(sender_id)
        if sender is None:
            raise NotFoundError(f"{self.label} not found")
        return sender

    def get_default_sender(self, channel: Union[Channel, str]) -> Optional[Sender]:
        return self.resolver.default_for_channel(channel)

    def create_sender(
        self,
        type: Union[SenderType, str],
        email_address: Optional[str] = None,
        sms_sender: Optional[str] = None,
        is_default: bool = False,
    ) -> Sender:
        """
        Create a sender.

        Raises:
            BadRequestError: If a field required by the sender type is missing
        """
        sender_type = parse_sender_type(type)
        self._validate(sender_type, email_address, sms_sender)

        now = utc_now_iso()
        sender = Sender(
            id=str(uuid.uuid4()),
            type=sender_type,
            email_address=email_address,
            sms_sender=sms_sender,
            is_default=bool(is_default),
            created_at=now,
            updated_at=now,
        )

        with self.store.lock:
            if sender.is_default:
                self._clear_defaults_overlapping(sender.type, exclude_id=sender.id)
            self.store.set(sender.id, sender)

        logger.info(f"Created {self.label.lower()}: {sender.id}")
        return sender

    def update_sender(self, sender_id: str, **changes: Any) -> Sender:
        """
        Merge ``changes`` into a sender.

        Raises:
            NotFoundError: If the sender does not exist
            BadRequestError: If the merged sender is invalid
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unknown {self.label.lower()} fields: {', '.join(sorted(unknown))}")
        if "type" in changes:
            changes["type"] = parse_sender_type(changes["type"])

        with self.store.lock:
            existing = self.store.get_by_id(sender_id)
            if existing is None:
                raise NotFoundError(f"{self.label} not found")

            updated = replace(existing, **changes, updated_at=utc_now_iso())
            self._validate(updated.type, updated.email_address, updated.sms_sender)

            if updated.is_default:
                self._clear_defaults_overlapping(updated.type, exclude_id=sender_id)
            self.store.set(sender_id, updated)

        logger.info(f"Updated {self.label.lower()}: {sender_id}")
        return updated

    def delete_sender(self, sender_id: str) -> None:
        if not self.store.delete(sender_id):
            raise NotFoundError(f"{self.label} not found")
        logger.info(f"Deleted {self.label.lower()}: {sender_id}")

    def _clear_defaults_overlapping(self, sender_type: SenderType, exclude_id: str) -> None:
        # Caller holds self.store.lock
        for other in self.store.get_all():
            if other.id != exclude_id and other.is_default and other.type.intersects(sender_type):
                self.store.set(other.id, replace(other, is_default=False, updated_at=utc_now_iso()))
                logger.info(f"Cleared default flag on {self.label.lower()} {other.id}")

    def _validate(
        self,
        sender_type: SenderType,
        email_address: Optional[str],
        sms_sender: Optional[str]
    ) -> None:
        if sender_type.includes_email and not email_address:
            raise BadRequestError(f"email_address is required for type {sender_type.value}")
        if sender_type.includes_sms and not sms_sender:
            raise BadRequestError(f"sms_sender is required for type {sender_type.value}")
