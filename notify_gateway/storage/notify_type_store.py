"""
Notify-type store with a secondary index on ``code``.
"""

from typing import Dict, Optional

from notify_gateway.notifications.models import NotifyType
from notify_gateway.storage.memory_store import InMemoryStore


class NotifyTypeStore(InMemoryStore[NotifyType]):
    """In-memory notify types, addressable by id or by code."""

    def __init__(self):
        super().__init__("notify_types")
        self._by_code: Dict[str, str] = {}

    def set(self, record_id: str, record: NotifyType) -> None:
        with self.lock:
            previous = self._records.get(record_id)
            if previous is not None and previous.code != record.code:
                self._by_code.pop(previous.code, None)
            self._records[record_id] = record
            self._by_code[record.code] = record_id

    def delete(self, record_id: str) -> bool:
        with self.lock:
            record = self._records.pop(record_id, None)
            if record is None:
                return False
            self._by_code.pop(record.code, None)
            return True

    def get_by_code(self, code: str) -> Optional[NotifyType]:
        with self.lock:
            record_id = self._by_code.get(code)
            return self._records.get(record_id) if record_id else None

    def clear(self) -> None:
        with self.lock:
            self._by_code.clear()
            super().clear()
