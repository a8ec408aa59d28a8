"""
Sender/identity resolution for a delivery channel.
"""

import logging
from typing import Optional, Union

from notify_gateway.notifications.exceptions import NotFoundError
from notify_gateway.notifications.models import Channel, Sender
from notify_gateway.storage.memory_store import KeyValueStore


logger = logging.getLogger(__name__)


class SenderResolver:
    """
    Picks the sender attached to an outgoing message.

    An explicit id must exist. Without one, the channel's default sender is
    returned, or None when no default is set; callers then fall back to
    configured from-addresses.
    """

    def __init__(self, store: KeyValueStore, label: str = "Sender"):
        self.store = store
        self.label = label

    def resolve_for_channel(
        self,
        explicit_id: Optional[str],
        channel: Union[Channel, str]
    ) -> Optional[Sender]:
        """
        Resolve the sender for a send.

        Args:
            explicit_id: Sender id supplied by the caller, if any
            channel: Channel being sent on

        Returns:
            Sender or None if no explicit id was given and no default exists

        Raises:
            NotFoundError: If ``explicit_id`` does not exist
        """
        if explicit_id:
            sender = self.store.get_by_id(explicit_id)
            if sender is None:
                raise NotFoundError(f"{self.label} {explicit_id} not found")
            return sender
        return self.default_for_channel(channel)

    def default_for_channel(self, channel: Union[Channel, str]) -> Optional[Sender]:
        for sender in self.store.get_all():
            if sender.is_default and sender.type.covers(channel):
                return sender
        logger.debug(f"No default {self.label.lower()} for channel {channel}")
        return None
