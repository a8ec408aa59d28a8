"""
Configuration module for the notification gateway.
"""

from .settings import (
    Settings,
    Environment,
    LogLevel,
    TemplateEngine,
    DeliveryConfig,
    SmtpConfig,
    ChesConfig,
    MailgunConfig,
    TwilioConfig,
    GcNotifyConfig,
    CircuitBreakerConfig,
    LoggingConfig,
    load_settings,
    get_settings,
    reload_settings,
)

__all__ = [
    'Settings',
    'Environment',
    'LogLevel',
    'TemplateEngine',
    'DeliveryConfig',
    'SmtpConfig',
    'ChesConfig',
    'MailgunConfig',
    'TwilioConfig',
    'GcNotifyConfig',
    'CircuitBreakerConfig',
    'LoggingConfig',
    'load_settings',
    'get_settings',
    'reload_settings',
]
