"""
Email transport using the Mailgun HTTP API.
"""

import os
import logging
from typing import Optional

import requests

from notify_gateway.notifications.exceptions import ConfigurationError, DeliveryError
from notify_gateway.notifications.models import EmailMessage, SendingMethod, SendResult


logger = logging.getLogger(__name__)


class MailgunEmailSender:
    """
    Email sender using the Mailgun API.

    Registered under the ``mailgun`` adapter key.
    """

    name = "mailgun"

    def __init__(
        self,
        api_key: Optional[str] = None,
        domain: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize Mailgun sender.

        Args:
            api_key: Mailgun API key (defaults to env var)
            domain: Sending domain (defaults to env var)
            base_url: API root, e.g. the EU endpoint
            timeout: Request timeout in seconds
        """
        self.api_key = api_key or os.getenv('MAILGUN_API_KEY')
        self.domain = domain or os.getenv('MAILGUN_DOMAIN')
        self.timeout = timeout

        if not self.api_key:
            raise ConfigurationError("Mailgun API key not found. Set MAILGUN_API_KEY")
        if not self.domain:
            raise ConfigurationError("Mailgun domain not found. Set MAILGUN_DOMAIN")

        api_root = (base_url or "https://api.mailgun.net/v3").rstrip("/")
        self.base_url = f"{api_root}/{self.domain}/messages"
        self.auth = ('api', self.api_key)

        logger.info("Email sender initialized with Mailgun")

    def send(self, message: EmailMessage) -> SendResult:
        """
        Send an email through Mailgun.

        Raises:
            DeliveryError: If Mailgun rejects the message or is unreachable
        """
        data = {
            'from': message.from_address,
            'to': message.to,
            'subject': message.subject,
            'html': message.body,
        }
        if message.reply_to:
            data['h:Reply-To'] = message.reply_to

        files = [
            ('attachment', (a.filename, a.content))
            for a in message.attachments or []
            if a.sending_method == SendingMethod.ATTACH
        ]

        try:
            logger.info(f"Sending email to {message.to}")
            response = requests.post(
                self.base_url,
                auth=self.auth,
                data=data,
                files=files or None,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            error_msg = f"Mailgun request error: {str(e)}"
            logger.error(f"Failed to send email to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name)

        if response.status_code != 200:
            error_msg = f"Mailgun HTTP error: {response.status_code}"
            try:
                error_data = response.json()
                if 'message' in error_data:
                    error_msg += f" - {error_data['message']}"
            except ValueError:
                error_msg += f" - {response.text}"

            logger.error(f"Failed to send email to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name, upstream_status=response.status_code)

        try:
            response_data = response.json()
        except ValueError:
            response_data = {}

        message_id = response_data.get('id') or ""
        logger.info(f"Email sent successfully to {message.to}: {message_id}")
        return SendResult(message_id=message_id, provider_response=response_data.get('message'))
