"""
Logging system for the notification gateway.

Provides console and rotating file logging, JSON output through
python-json-logger, and structlog configuration for structured logging.
"""

import os
import sys
import logging
import logging.handlers
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

import structlog
from pythonjsonlogger import jsonlogger


ROOT_LOGGER_NAME = "notify_gateway"


class StructuredFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding source location and thread info."""

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        if self.include_extra:
            super().add_fields(log_record, record, message_dict)
        else:
            log_record["message"] = record.getMessage()

        log_record["timestamp"] = datetime.fromtimestamp(record.created).isoformat()
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        if record.thread:
            log_record["thread_id"] = record.thread

        if record.exc_info and "exc_info" not in log_record:
            log_record["exception"] = self.formatException(record.exc_info)


class LoggerSetup:
    """Main logger setup and configuration."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize logger setup.

        Args:
            config: Configuration dictionary (optional, will use environment if None)
        """
        self.config = config or self._load_config_from_env()
        self._setup_complete = False

    def setup_logging(self) -> logging.Logger:
        """
        Setup logging handlers on the gateway's root logger.

        Returns:
            Main application logger
        """
        main_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if self._setup_complete:
            return main_logger

        level = getattr(logging, str(self.config.get('level', 'INFO')).upper())
        main_logger.setLevel(level)
        main_logger.handlers.clear()

        # Setup file logging
        if self.config.get('enable_file_logging', False):
            self._setup_file_logging(main_logger)

        # Setup console logging
        if self.config.get('enable_console_logging', True):
            self._setup_console_logging(main_logger)

        # Setup structured logging
        if self.config.get('enable_json_logging', False):
            self._setup_structured_logging()

        self._setup_complete = True

        main_logger.info(
            "Logging system initialized",
            extra={"config": {k: v for k, v in self.config.items() if 'password' not in k.lower()}}
        )

        return main_logger

    def get_logger(self, name: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            name: Component name, nested under the gateway's root logger

        Returns:
            Configured logger instance
        """
        if name.startswith(ROOT_LOGGER_NAME):
            return logging.getLogger(name)
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    def _setup_file_logging(self, logger: logging.Logger):
        """Setup rotating file logging."""
        log_file = self.config.get('log_file', 'logs/notify_gateway.log')
        max_bytes = self.config.get('max_bytes', 10 * 1024 * 1024)
        backup_count = self.config.get('backup_count', 5)

        # Create log directory
        log_dir = os.path.dirname(log_file)
        if log_dir:
            Path(log_dir).mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )

        if self.config.get('enable_json_logging', False):
            formatter = StructuredFormatter()
        else:
            formatter = logging.Formatter(
                fmt=self.config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        file_handler.setFormatter(formatter)
        file_handler.setLevel(logger.level)

        logger.addHandler(file_handler)

    def _setup_console_logging(self, logger: logging.Logger):
        """Setup console logging."""
        console_handler = logging.StreamHandler(sys.stdout)

        console_level = str(self.config.get('console_level', self.config.get('level', 'INFO'))).upper()
        console_handler.setLevel(getattr(logging, console_level))

        # Use simpler format for console
        if self.config.get('enable_json_logging', False):
            formatter = StructuredFormatter(include_extra=False)
        else:
            formatter = logging.Formatter(
                fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%H:%M:%S'
            )

        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    def _setup_structured_logging(self):
        """Setup structlog for structured logging."""
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _load_config_from_env(self) -> Dict[str, Any]:
        """Load logging configuration from environment variables."""
        return {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'format': os.getenv('LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
            'enable_file_logging': os.getenv('LOG_ENABLE_FILE_LOGGING', 'false').lower() == 'true',
            'log_file': os.getenv('LOG_FILE', 'logs/notify_gateway.log'),
            'max_bytes': int(os.getenv('LOG_MAX_BYTES', str(10 * 1024 * 1024))),
            'backup_count': int(os.getenv('LOG_BACKUP_COUNT', '5')),
            'enable_console_logging': os.getenv('LOG_ENABLE_CONSOLE_LOGGING', 'true').lower() == 'true',
            'console_level': os.getenv('LOG_CONSOLE_LEVEL', 'INFO'),
            'enable_json_logging': os.getenv('LOG_ENABLE_JSON_LOGGING', 'false').lower() == 'true',
        }

    def configure_third_party_loggers(self):
        """Configure third-party library loggers."""
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('requests').setLevel(logging.WARNING)

        # Twilio logs every HTTP exchange at INFO
        logging.getLogger('twilio').setLevel(logging.WARNING)

    def set_log_level(self, level: str):
        """Dynamically change log level."""
        log_level = getattr(logging, level.upper())

        main_logger = logging.getLogger(ROOT_LOGGER_NAME)
        main_logger.setLevel(log_level)

        for handler in main_logger.handlers:
            handler.setLevel(log_level)

        self.config['level'] = level.upper()


# Global logger setup instance
_logger_setup: Optional[LoggerSetup] = None


def setup_logging(config: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """
    Setup application logging.

    Args:
        config: Optional logging configuration

    Returns:
        Main application logger
    """
    global _logger_setup

    if _logger_setup is None:
        _logger_setup = LoggerSetup(config)

    return _logger_setup.setup_logging()


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        name: Component name

    Returns:
        Logger instance
    """
    if _logger_setup is None:
        setup_logging()

    return _logger_setup.get_logger(name)


def configure_third_party_loggers():
    """Configure third-party library loggers."""
    if _logger_setup is None:
        setup_logging()

    _logger_setup.configure_third_party_loggers()


def set_log_level(level: str):
    """Set global log level."""
    if _logger_setup is None:
        setup_logging()

    _logger_setup.set_log_level(level)
