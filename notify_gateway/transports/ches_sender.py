"""
Email transport for the CHES (Common Hosted Email Service) API.
"""

import base64
import logging
import threading
import time
from typing import Any, Dict, Optional

import requests

from notify_gateway.notifications.exceptions import ConfigurationError, DeliveryError
from notify_gateway.notifications.models import EmailMessage, SendResult


logger = logging.getLogger(__name__)

# Refresh the token when it has less than this many seconds left
TOKEN_REFRESH_MARGIN_SECONDS = 60
DEFAULT_TOKEN_TTL_SECONDS = 300


class ChesEmailSender:
    """
    Email sender using the CHES REST API.

    Authenticates with an OAuth2 client-credentials token that is cached
    until shortly before it expires.
    """

    name = "ches"

    def __init__(
        self,
        base_url: str,
        token_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not base_url or not token_url:
            raise ConfigurationError("CHES base URL and token URL are required")
        if not client_id or not client_secret:
            raise ConfigurationError("CHES credentials not found. Set CHES_CLIENT_ID and CHES_CLIENT_SECRET")

        self.base_url = base_url.rstrip("/")
        self.token_url = token_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = session or requests.Session()

        self._token: Optional[str] = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

        logger.info(f"CHES sender initialized for {self.base_url}")

    def send(self, message: EmailMessage) -> SendResult:
        """
        Send an email through CHES.

        Raises:
            DeliveryError: If authentication or the send request fails
        """
        payload = {
            "from": message.from_address,
            "to": [message.to],
            "subject": message.subject,
            "body": message.body,
            "bodyType": "html",
        }
        if message.attachments:
            payload["attachments"] = [
                {
                    "content": base64.b64encode(a.content).decode("ascii"),
                    "contentType": "application/octet-stream",
                    "encoding": "base64",
                    "filename": a.filename,
                }
                for a in message.attachments
            ]

        headers = {"Authorization": f"Bearer {self._get_token()}"}

        try:
            logger.info(f"Sending email to {message.to} via CHES")
            response = self.session.post(
                f"{self.base_url}/email",
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            error_msg = f"CHES request error: {e}"
            logger.error(f"Failed to send email to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name)

        if not response.ok:
            error_msg = f"CHES HTTP error: {response.status_code} - {response.text}"
            logger.error(f"Failed to send email to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name, upstream_status=response.status_code)

        data = self._json(response)
        messages = data.get("messages") or []
        message_id = (messages[0].get("msgId") if messages else None) or data.get("txId") or ""

        logger.info(f"Email sent successfully via CHES: {message_id}")
        return SendResult(message_id=message_id, provider_response=data)

    def _get_token(self) -> str:
        with self._token_lock:
            if self._token and time.time() < self._token_expires_at - TOKEN_REFRESH_MARGIN_SECONDS:
                return self._token

            try:
                response = self.session.post(
                    self.token_url,
                    data={"grant_type": "client_credentials"},
                    auth=(self.client_id, self.client_secret),
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as e:
                raise DeliveryError(f"CHES token request error: {e}", provider=self.name)

            if not response.ok:
                raise DeliveryError(
                    f"CHES token request failed: {response.status_code}",
                    provider=self.name,
                    upstream_status=response.status_code,
                )

            data = self._json(response)
            token = data.get("access_token")
            if not token:
                raise DeliveryError("CHES token response missing access_token", provider=self.name)

            self._token = token
            self._token_expires_at = time.time() + int(data.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS)
            logger.debug("CHES access token refreshed")
            return token

    @staticmethod
    def _json(response: requests.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
