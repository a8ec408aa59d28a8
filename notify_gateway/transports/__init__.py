"""
Delivery transports: SMTP, CHES and Mailgun email, Twilio SMS.
"""

from notify_gateway.transports.base import EmailTransport, SmsTransport
from notify_gateway.transports.smtp_sender import SmtpEmailSender
from notify_gateway.transports.ches_sender import ChesEmailSender
from notify_gateway.transports.mailgun_sender import MailgunEmailSender
from notify_gateway.transports.twilio_sender import TwilioSmsSender
from notify_gateway.transports.circuit_breaker import (
    CircuitBreaker, CircuitBreakerTransport, CircuitState
)

__all__ = [
    'EmailTransport',
    'SmsTransport',
    'SmtpEmailSender',
    'ChesEmailSender',
    'MailgunEmailSender',
    'TwilioSmsSender',
    'CircuitBreaker',
    'CircuitBreakerTransport',
    'CircuitState',
]
