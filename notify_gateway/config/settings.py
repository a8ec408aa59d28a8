"""
Configuration management for the notification gateway.

Handles environment variables, validation, and different deployment environments
with type safety and comprehensive validation.
"""

import os
from typing import Optional, Dict, Any
from enum import Enum
import logging

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class Environment(str, Enum):
    """Deployment environment types."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class TemplateEngine(str, Enum):
    """Bundled template engines."""
    JINJA2 = "jinja2"
    NUNJUCKS = "nunjucks"
    HANDLEBARS = "handlebars"
    MUSTACHE = "mustache"


class DeliveryConfig(BaseSettings):
    """Default delivery policy applied when a request does not override it."""

    email_adapter: str = Field(
        "nodemailer",
        description="Default email adapter key",
        validation_alias=AliasChoices("EMAIL_ADAPTER", "EMAIL_TRANSPORT"),
    )
    sms_adapter: str = Field(
        "twilio",
        description="Default SMS adapter key",
        validation_alias=AliasChoices("SMS_ADAPTER", "SMS_TRANSPORT"),
    )
    default_template_engine: TemplateEngine = Field(
        TemplateEngine.JINJA2,
        description="Engine for templates that do not name one",
        alias="GC_NOTIFY_DEFAULT_TEMPLATE_ENGINE",
    )
    default_subject: str = Field("Notification", description="Subject for templates without one", alias="DEFAULT_SUBJECT")
    email_from: str = Field("noreply@localhost", description="Last-resort from address", alias="DEFAULT_EMAIL_FROM")
    sms_from_number: str = Field("+15551234567", description="Last-resort SMS from number", alias="DEFAULT_SMS_FROM_NUMBER")

    @field_validator('email_adapter', 'sms_adapter', mode='before')
    def normalize_adapter(cls, v):
        """Trim and lowercase adapter keys."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator('default_template_engine', mode='before')
    def validate_template_engine(cls, v):
        """Validate and normalize the default template engine."""
        if isinstance(v, str):
            try:
                return TemplateEngine(v.strip().lower())
            except ValueError:
                raise ValueError(f'Invalid template engine: {v}. Must be one of: {[e.value for e in TemplateEngine]}')
        return v

    model_config = {"populate_by_name": True}


class SmtpConfig(BaseSettings):
    """SMTP relay configuration (``nodemailer`` adapter)."""

    host: str = Field("localhost", description="SMTP host")
    port: int = Field(1025, description="SMTP port")
    secure: bool = Field(False, description="Use implicit TLS")
    user: Optional[str] = Field(None, description="SMTP login user")
    password: Optional[str] = Field(None, description="SMTP login password", alias="NODEMAILER_PASS")
    from_address: str = Field("noreply@localhost", description="From address", alias="NODEMAILER_FROM")
    timeout_seconds: int = Field(30, description="Socket timeout in seconds")

    @field_validator('port')
    def port_must_be_valid(cls, v):
        if not 0 < v < 65536:
            raise ValueError('SMTP port must be between 1 and 65535')
        return v

    model_config = {"env_prefix": "NODEMAILER_", "populate_by_name": True}


class ChesConfig(BaseSettings):
    """CHES REST API configuration."""

    base_url: Optional[str] = Field(None, description="CHES API base URL")
    token_url: Optional[str] = Field(None, description="OAuth2 token endpoint")
    client_id: Optional[str] = Field(None, description="OAuth2 client id")
    client_secret: Optional[str] = Field(None, description="OAuth2 client secret")
    from_address: Optional[str] = Field(None, description="From address", alias="CHES_FROM")
    timeout_seconds: int = Field(30, description="Request timeout in seconds")

    @field_validator('base_url', 'token_url')
    def url_must_be_valid(cls, v):
        if v and not v.startswith(('http://', 'https://')):
            raise ValueError('CHES URLs must start with http:// or https://')
        return v.rstrip('/') if v else v

    @property
    def is_configured(self) -> bool:
        """Check if CHES is properly configured."""
        return bool(self.base_url and self.token_url and self.client_id and self.client_secret)

    model_config = {"env_prefix": "CHES_", "populate_by_name": True}


class MailgunConfig(BaseSettings):
    """Mailgun API configuration."""

    api_key: Optional[str] = Field(None, description="Mailgun API key")
    domain: Optional[str] = Field(None, description="Mailgun domain")
    base_url: str = Field("https://api.mailgun.net/v3", description="API base URL")
    from_address: Optional[str] = Field(None, description="From address", alias="MAILGUN_FROM")
    timeout_seconds: int = Field(30, description="Request timeout in seconds")

    @field_validator('base_url')
    def base_url_must_be_valid(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Base URL must start with http:// or https://')
        return v.rstrip('/')

    @property
    def is_configured(self) -> bool:
        """Check if Mailgun is properly configured."""
        return bool(self.api_key and self.domain)

    model_config = {"env_prefix": "MAILGUN_", "populate_by_name": True}


class TwilioConfig(BaseSettings):
    """Twilio SMS configuration."""

    account_sid: Optional[str] = Field(None, description="Twilio account SID")
    auth_token: Optional[str] = Field(None, description="Twilio auth token")
    from_number: Optional[str] = Field(None, description="Twilio sending number")

    @property
    def is_configured(self) -> bool:
        """Check if Twilio credentials are present (dev mode otherwise)."""
        return bool(self.account_sid and self.auth_token)

    model_config = {"env_prefix": "TWILIO_"}


class GcNotifyConfig(BaseSettings):
    """Upstream GC Notify API used in passthrough mode."""

    base_url: Optional[str] = Field(None, description="GC Notify API base URL")
    timeout_seconds: int = Field(30, description="Request timeout in seconds")

    @field_validator('base_url')
    def base_url_must_be_valid(cls, v):
        if v and not v.startswith(('http://', 'https://')):
            raise ValueError('GC Notify base URL must start with http:// or https://')
        return v.rstrip('/') if v else v

    model_config = {"env_prefix": "GC_NOTIFY_"}


class CircuitBreakerConfig(BaseSettings):
    """Circuit breaker settings applied to every transport."""

    enabled: bool = Field(True, description="Wrap transports in circuit breakers")
    email_failure_threshold: int = Field(5, description="Email circuit breaker failure threshold")
    email_timeout_seconds: int = Field(180, description="Email circuit breaker timeout")
    sms_failure_threshold: int = Field(3, description="SMS circuit breaker failure threshold")
    sms_timeout_seconds: int = Field(300, description="SMS circuit breaker timeout")

    model_config = {"env_prefix": "CIRCUIT_BREAKER_"}


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Default log level")
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format string"
    )

    # File logging
    enable_file_logging: bool = Field(False, description="Enable file logging")
    log_file: str = Field("logs/notify_gateway.log", description="Log file path")
    max_bytes: int = Field(10 * 1024 * 1024, description="Maximum log file size in bytes")
    backup_count: int = Field(5, description="Number of backup log files")

    # Console logging
    enable_console_logging: bool = Field(True, description="Enable console logging")
    console_level: LogLevel = Field(LogLevel.INFO, description="Console log level")

    # Structured logging
    enable_json_logging: bool = Field(False, description="Enable JSON structured logging")

    model_config = {"env_prefix": "LOG_"}


class Settings(BaseSettings):
    """Main application settings."""

    # Environment and basic settings
    environment: Environment = Field(Environment.DEVELOPMENT, description="Deployment environment")
    debug: bool = Field(False, description="Enable debug mode")
    app_name: str = Field("Notify Gateway", description="Application name")
    app_version: str = Field("1.0.0", description="Application version")

    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    ches: ChesConfig = Field(default_factory=ChesConfig)
    mailgun: MailgunConfig = Field(default_factory=MailgunConfig)
    twilio: TwilioConfig = Field(default_factory=TwilioConfig)
    gc_notify: GcNotifyConfig = Field(default_factory=GcNotifyConfig)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('environment', mode='before')
    def validate_environment(cls, v):
        """Validate and normalize environment."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                raise ValueError(f'Invalid environment: {v}. Must be one of: {list(Environment)}')
        return v

    @model_validator(mode='after')
    def validate_environment_settings(self):
        """Apply environment-specific validation and defaults."""
        if self.environment == Environment.PRODUCTION:
            if self.debug:
                raise ValueError('Debug mode cannot be enabled in production')

            # Ensure secure settings for production
            if self.ches.base_url and not self.ches.base_url.startswith('https://'):
                raise ValueError('Production environment requires HTTPS for API calls')
            if self.gc_notify.base_url and not self.gc_notify.base_url.startswith('https://'):
                raise ValueError('Production environment requires HTTPS for API calls')

        elif self.environment == Environment.DEVELOPMENT:
            self.debug = True

        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == Environment.TESTING

    def adapter_from_addresses(self) -> Dict[str, str]:
        """Configured from-address per email adapter key."""
        addresses = {
            "nodemailer": self.smtp.from_address,
            "ches": self.ches.from_address,
            "mailgun": self.mailgun.from_address,
        }
        return {key: value for key, value in addresses.items() if value}

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary (for debugging)."""
        # Remove sensitive information
        sensitive_fields = [
            'smtp.password',
            'ches.client_secret',
            'mailgun.api_key',
            'twilio.auth_token',
        ]

        data = self.model_dump()

        # Mask sensitive fields
        for field_path in sensitive_fields:
            parts = field_path.split('.')
            current = data
            for part in parts[:-1]:
                if part in current:
                    current = current[part]
                else:
                    break
            else:
                if parts[-1] in current and current[parts[-1]]:
                    current[parts[-1]] = "***MASKED***"

        return data

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Load application settings from environment variables and .env file.

    Args:
        env_file: Optional path to .env file

    Returns:
        Configured Settings instance

    Raises:
        ValueError: If configuration is invalid
        FileNotFoundError: If the given env file does not exist
    """
    # Load environment variables from .env file
    if env_file:
        if not os.path.exists(env_file):
            raise FileNotFoundError(f"Environment file not found: {env_file}")
        load_dotenv(env_file, override=True)
    else:
        # Try to load from default locations
        for possible_env_file in [".env", ".env.local", f".env.{os.getenv('ENVIRONMENT', 'development')}"]:
            if os.path.exists(possible_env_file):
                load_dotenv(possible_env_file, override=False)

    try:
        return Settings()
    except Exception as e:
        logger.error(
            f"Error loading settings: {e}. Check EMAIL_ADAPTER, SMS_ADAPTER, "
            "NODEMAILER_*, CHES_*, TWILIO_* and GC_NOTIFY_* variables."
        )
        raise


def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance
    """
    if not hasattr(get_settings, '_cached_settings'):
        get_settings._cached_settings = load_settings()

    return get_settings._cached_settings


def reload_settings() -> Settings:
    """
    Reload settings (clears cache).

    Returns:
        Fresh Settings instance
    """
    if hasattr(get_settings, '_cached_settings'):
        delattr(get_settings, '_cached_settings')

    return get_settings()
