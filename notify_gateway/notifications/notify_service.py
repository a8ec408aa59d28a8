"""
Send-by-profile: resolves a notify type, merges request overrides over it
and sends a single email.
"""

import logging
import uuid

from notify_gateway.delivery.adapter_resolver import DeliveryAdapterResolver, PassthroughTarget
from notify_gateway.notifications.composer import NotificationComposer
from notify_gateway.notifications.exceptions import BadRequestError, NotFoundError, UnsupportedError
from notify_gateway.notifications.models import (
    Channel, MessageAssociation, NotifyRequest, NotifyResult
)
from notify_gateway.services.defaults_service import DefaultsService
from notify_gateway.services.identities_service import IdentitiesService
from notify_gateway.services.notify_types_service import NotifyTypesService


logger = logging.getLogger(__name__)


class NotifyService:
    """Sends notifications described by stored notify types."""

    def __init__(
        self,
        adapter_resolver: DeliveryAdapterResolver,
        identities_service: IdentitiesService,
        notify_types_service: NotifyTypesService,
        defaults_service: DefaultsService,
        composer: NotificationComposer,
    ):
        self.adapter_resolver = adapter_resolver
        self.identities_service = identities_service
        self.notify_types_service = notify_types_service
        self.defaults_service = defaults_service
        self.composer = composer

    def send(self, request: NotifyRequest) -> NotifyResult:
        """
        Send one email for a notify type.

        Request overrides always win over the notify type, which wins over
        tenant defaults.

        Args:
            request: Notify request with the profile code and overrides

        Returns:
            NotifyResult with generated ids and one message association

        Raises:
            BadRequestError: On a passthrough adapter, a recipient count other
                than one, or a missing template id
            NotFoundError: If the notify type, template or identity is absent
            UnsupportedError: If the channel is not email
        """
        transport = self.adapter_resolver.resolve_email()
        if isinstance(transport, PassthroughTarget):
            raise BadRequestError(
                "Notify API supports only nodemailer and ches adapters. "
                "Use X-Delivery-Email-Adapter: nodemailer or ches."
            )

        notify_type = self.notify_types_service.get_by_code(request.notify_type)
        if notify_type is None:
            raise NotFoundError(f'Notify type "{request.notify_type}" not found')

        defaults = self.defaults_service.get_defaults()
        common = request.common
        to = list(common.to or [])
        template_id = common.template_id or notify_type.template_id
        params = {**(notify_type.params or {}), **(common.params or {})}
        send_as = common.send_as or notify_type.send_as or Channel.EMAIL.value
        identity_id = request.email.email_identity_id or notify_type.identity_id or defaults.email_identity_id

        if send_as != Channel.EMAIL.value:
            raise UnsupportedError("Only sendAs: email is implemented. Use override.common.sendAs: email.")
        if len(to) != 1:
            raise BadRequestError("Single email only: override.common.to must have exactly one recipient")
        if not template_id:
            raise BadRequestError("override.common.templateId or notifyType.templateId is required")

        notify_id = str(uuid.uuid4())
        tx_id = str(uuid.uuid4())
        msg_id = str(uuid.uuid4())
        logger.info(f"Notify send: {notify_id} to {to[0]}")

        self.composer.deliver_email(
            transport,
            template_id=template_id,
            to=to[0],
            personalisation=params,
            sender_id=identity_id,
            sender_resolver=self.identities_service.resolver,
            engine_overrides=(common.renderer, notify_type.renderer, defaults.renderer),
        )

        return NotifyResult(
            notify_id=notify_id,
            tx_id=tx_id,
            messages=[MessageAssociation(msg_id=msg_id, channel=Channel.EMAIL, to=to)],
        )
