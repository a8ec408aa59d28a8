"""
Email transport over SMTP.
"""

import logging
import smtplib
import uuid
from email.message import EmailMessage as MimeMessage
from email.utils import make_msgid
from typing import Optional

from notify_gateway.notifications.exceptions import DeliveryError
from notify_gateway.notifications.models import EmailMessage, SendingMethod, SendResult


logger = logging.getLogger(__name__)


class SmtpEmailSender:
    """
    Email sender for any SMTP relay.

    Registered under the ``nodemailer`` adapter key. Only attachments with
    sending method ``attach`` are embedded; ``link`` attachments are skipped.
    """

    name = "nodemailer"

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1025,
        secure: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize SMTP sender.

        Args:
            host: SMTP server host
            port: SMTP server port
            secure: Use implicit TLS (SMTPS) instead of a plain connection
            username: Login user (login is skipped when empty)
            password: Login password
            timeout: Socket timeout in seconds
        """
        self.host = host
        self.port = port
        self.secure = secure
        self.username = username
        self.password = password
        self.timeout = timeout

        logger.info(f"SMTP sender initialized for {host}:{port} (secure={secure})")

    def send(self, message: EmailMessage) -> SendResult:
        """
        Send an email.

        Raises:
            DeliveryError: If the SMTP exchange fails
        """
        mime = self._build_message(message)

        try:
            logger.info(f"Sending email to {message.to} via SMTP")
            smtp_class = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
            with smtp_class(self.host, self.port, timeout=self.timeout) as smtp:
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                refused = smtp.send_message(mime)

        except (smtplib.SMTPException, OSError) as e:
            error_msg = f"SMTP error: {e}"
            logger.error(f"Failed to send email to {message.to}: {error_msg}")
            raise DeliveryError(error_msg, provider=self.name)

        logger.info(f"Email sent successfully to {message.to}")
        return SendResult(
            message_id=mime["Message-ID"],
            provider_response={"refused": refused} if refused else "accepted",
        )

    def _build_message(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        mime["From"] = message.from_address
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Message-ID"] = make_msgid(idstring=uuid.uuid4().hex[:12])
        if message.reply_to:
            mime["Reply-To"] = message.reply_to

        mime.set_content(message.body, subtype="html", charset="utf-8")

        for attachment in message.attachments or []:
            if attachment.sending_method != SendingMethod.ATTACH:
                continue
            mime.add_attachment(
                attachment.content,
                maintype="application",
                subtype="octet-stream",
                filename=attachment.filename,
            )
        return mime
