"""
Identity management (camelCase view over the sender store).
"""

import re
from typing import Any, Dict, Optional, Union

from notify_gateway.notifications.exceptions import BadRequestError
from notify_gateway.notifications.models import Channel, Sender, SenderType
from notify_gateway.services.senders_service import SendersService


SMS_SENDER_PATTERN = re.compile(r"^[\dA-Za-z+]{1,15}$")


class IdentitiesService(SendersService):
    """
    Identities share storage and the single-default invariant with senders.

    SMS sender ids are additionally restricted to 1-15 alphanumerics or ``+``.
    """

    label = "Identity"

    def get_identities(self, identity_type: Optional[Union[SenderType, str]] = None) -> Dict[str, Any]:
        return {"identities": [i.to_identity_dict() for i in self.get_senders(identity_type)]}

    def get_identity(self, identity_id: str) -> Sender:
        return self.get_sender(identity_id)

    def get_default_identity(self, channel: Union[Channel, str]) -> Optional[Sender]:
        return self.get_default_sender(channel)

    def create_identity(
        self,
        type: Union[SenderType, str],
        email_address: Optional[str] = None,
        sms_sender: Optional[str] = None,
        is_default: bool = False,
    ) -> Sender:
        return self.create_sender(type, email_address, sms_sender, is_default)

    def update_identity(self, identity_id: str, **changes: Any) -> Sender:
        return self.update_sender(identity_id, **changes)

    def delete_identity(self, identity_id: str) -> None:
        self.delete_sender(identity_id)

    def _validate(
        self,
        sender_type: SenderType,
        email_address: Optional[str],
        sms_sender: Optional[str]
    ) -> None:
        super()._validate(sender_type, email_address, sms_sender)
        if sms_sender is not None and not SMS_SENDER_PATTERN.match(sms_sender):
            raise BadRequestError(
                "smsSender must be 1-15 characters of digits, letters or '+'"
            )
