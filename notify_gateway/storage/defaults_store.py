"""
Single-record store for tenant defaults.
"""

import threading
from dataclasses import replace
from typing import Any, Optional

from notify_gateway.notifications.models import TenantDefaults


class DefaultsStore:
    """Holds the current TenantDefaults and applies partial updates atomically."""

    def __init__(self, initial: Optional[TenantDefaults] = None):
        self._lock = threading.Lock()
        self._defaults = initial or TenantDefaults()

    def get(self) -> TenantDefaults:
        with self._lock:
            return self._defaults

    def merge(self, **changes: Any) -> TenantDefaults:
        with self._lock:
            self._defaults = replace(self._defaults, **changes)
            return self._defaults
