"""
Utility modules for the notification gateway.
"""

from .logger import (
    setup_logging,
    get_logger,
    configure_third_party_loggers,
    set_log_level,
    LoggerSetup,
    StructuredFormatter,
)

__all__ = [
    'setup_logging',
    'get_logger',
    'configure_third_party_loggers',
    'set_log_level',
    'LoggerSetup',
    'StructuredFormatter',
]
