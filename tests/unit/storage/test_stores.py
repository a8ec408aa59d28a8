"""
Unit tests for the in-memory stores.
"""

import threading

from notify_gateway.notifications.models import NotifyType
from notify_gateway.storage import InMemoryStore, KeyValueStore, NotifyTypeStore


class TestInMemoryStore:
    """Test the key-value store contract."""

    def test_crud(self):
        store = InMemoryStore("things")

        store.set("a", 1)
        store.set("b", 2)

        assert store.get_by_id("a") == 1
        assert store.has("b")
        assert sorted(store.get_all()) == [1, 2]
        assert store.delete("a") is True
        assert store.delete("a") is False
        assert store.get_by_id("a") is None
        assert len(store) == 1

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryStore(), KeyValueStore)
        assert isinstance(NotifyTypeStore(), KeyValueStore)

    def test_concurrent_writes(self):
        store = InMemoryStore()

        def writer(offset):
            for i in range(200):
                store.set(f"{offset}-{i}", i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 1000


class TestNotifyTypeStore:
    """Test the code index."""

    def test_get_by_code(self):
        store = NotifyTypeStore()
        store.set("1", NotifyType(id="1", code="welcome"))

        assert store.get_by_code("welcome").id == "1"
        assert store.get_by_code("other") is None

    def test_clear(self):
        store = NotifyTypeStore()
        store.set("1", NotifyType(id="1", code="welcome"))

        store.clear()

        assert store.get_by_code("welcome") is None
        assert len(store) == 0
