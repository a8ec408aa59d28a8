"""
Key-value store contract and its in-memory implementation.
"""

import logging
import threading
from typing import Dict, Generic, List, Optional, Protocol, TypeVar, runtime_checkable


logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class KeyValueStore(Protocol[T]):
    """Contract shared by template, sender and notify-type stores."""

    def get_by_id(self, record_id: str) -> Optional[T]:
        ...

    def set(self, record_id: str, record: T) -> None:
        ...

    def delete(self, record_id: str) -> bool:
        ...

    def get_all(self) -> List[T]:
        ...

    def has(self, record_id: str) -> bool:
        ...


class InMemoryStore(Generic[T]):
    """
    Thread-safe in-memory store keyed by record id.

    The ``lock`` is re-entrant and exposed so services can group several
    reads and writes into one critical section.
    """

    def __init__(self, name: str = "store"):
        self.name = name
        self.lock = threading.RLock()
        self._records: Dict[str, T] = {}

    def get_by_id(self, record_id: str) -> Optional[T]:
        with self.lock:
            return self._records.get(record_id)

    def set(self, record_id: str, record: T) -> None:
        with self.lock:
            self._records[record_id] = record

    def delete(self, record_id: str) -> bool:
        with self.lock:
            return self._records.pop(record_id, None) is not None

    def get_all(self) -> List[T]:
        with self.lock:
            return list(self._records.values())

    def has(self, record_id: str) -> bool:
        with self.lock:
            return record_id in self._records

    def clear(self) -> None:
        with self.lock:
            self._records.clear()
        logger.debug(f"Store '{self.name}' cleared")

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)
