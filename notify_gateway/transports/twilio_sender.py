"""
SMS transport using the Twilio messaging API.
"""

import os
import logging
import time
from typing import Optional

from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException

from notify_gateway.notifications.exceptions import ConfigurationError, DeliveryError
from notify_gateway.notifications.models import SendResult, SmsMessage


logger = logging.getLogger(__name__)


class TwilioSmsSender:
    """
    SMS sender using Twilio.

    Without credentials the sender runs in development mode: messages are
    logged instead of sent.
    """

    name = "twilio"

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None,
    ):
        """
        Initialize Twilio sender.

        Args:
            account_sid: Twilio account SID (defaults to env var)
            auth_token: Twilio auth token (defaults to env var)
            from_number: Default sending number (defaults to env var)
        """
        self.account_sid = account_sid or os.getenv('TWILIO_ACCOUNT_SID')
        self.auth_token = auth_token or os.getenv('TWILIO_AUTH_TOKEN')
        self.from_number = from_number or os.getenv('TWILIO_FROM_NUMBER')

        if self.account_sid and self.auth_token:
            self.client = Client(self.account_sid, self.auth_token)
            logger.info(f"Twilio SMS sender initialized with from_number: {self.from_number}")
        else:
            self.client = None
            logger.warning("Twilio credentials not set; SMS sender running in dev mode")

    @property
    def is_dev_mode(self) -> bool:
        return self.client is None

    def send(self, message: SmsMessage) -> SendResult:
        """
        Send an SMS.

        Raises:
            ConfigurationError: If no from number is available
            DeliveryError: If Twilio rejects the message
        """
        from_number = message.from_number or self.from_number
        if not from_number:
            raise ConfigurationError("Twilio from number not configured. Set TWILIO_FROM_NUMBER")

        if self.is_dev_mode:
            logger.info(f"[Dev mode] Would send SMS to {message.to} from {from_number}: {message.body}")
            return SendResult(message_id=f"dev-{int(time.time() * 1000)}", provider_response="logged")

        try:
            logger.info(f"Sending SMS to {message.to}")
            sent = self.client.messages.create(
                body=message.body,
                from_=from_number,
                to=message.to
            )
        except TwilioRestException as e:
            error_msg = f"Twilio error: {e.msg} (Code: {e.code})"
            logger.error(f"Failed to send SMS to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name, upstream_status=e.status)

        logger.info(f"SMS sent successfully: {sent.sid}")
        return SendResult(message_id=sent.sid, provider_response=sent.status)
