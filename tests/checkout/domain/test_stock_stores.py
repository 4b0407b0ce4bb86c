import threading
import time

import pytest
from checkout.inventory.stock import get_stock_store, reset_stock_store, set_stock_store
from checkout.inventory.stock.fake_adapter import RecordingStockStore
from checkout.inventory.stock.memory_adapter import MemoryStockStore
from checkout.inventory.stock.sqlalchemy_adapter import SqlAlchemyStockStore


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStockStore()
        return

    store = SqlAlchemyStockStore(f"sqlite:///{tmp_path / 'stock.db'}")
    store.create_schema()
    yield store
    store.drop_schema()


class TestStockStore:
    def test_unknown_key_has_no_stock(self, store):
        assert store.level("p1") == 0
        assert store.decrement_if_available("p1", None, 1) is False

    def test_product_and_variant_levels_are_separate(self, store):
        store.set_level("p1", None, 4)
        store.set_level("p1", "v1", 7)

        assert store.level("p1") == 4
        assert store.level("p1", "v1") == 7

    def test_set_level_overwrites(self, store):
        store.set_level("p1", "v1", 7)
        store.set_level("p1", "v1", 2)

        assert store.level("p1", "v1") == 2

    def test_decrement_takes_stock_when_available(self, store):
        store.set_level("p1", "v1", 3)

        assert store.decrement_if_available("p1", "v1", 3) is True
        assert store.level("p1", "v1") == 0

    def test_decrement_is_all_or_nothing(self, store):
        store.set_level("p1", "v1", 2)

        assert store.decrement_if_available("p1", "v1", 3) is False
        assert store.level("p1", "v1") == 2

    def test_increment_gives_stock_back(self, store):
        store.set_level("p1", None, 1)
        store.increment("p1", None, 4)

        assert store.level("p1") == 5

    def test_negative_levels_rejected(self, store):
        with pytest.raises(ValueError):
            store.set_level("p1", None, -1)


class TestStockStoreFactory:
    def test_defaults_to_memory(self, monkeypatch):
        from checkout.config import get_settings

        monkeypatch.delenv("CHECKOUT_STOCK_DATABASE_URI", raising=False)
        get_settings.cache_clear()
        reset_stock_store()
        try:
            assert isinstance(get_stock_store(), MemoryStockStore)
        finally:
            reset_stock_store()

    def test_uses_sql_store_when_configured(self, monkeypatch, tmp_path):
        from checkout.config import get_settings

        monkeypatch.setenv("CHECKOUT_STOCK_DATABASE_URI", f"sqlite:///{tmp_path / 'stock.db'}")
        get_settings.cache_clear()
        reset_stock_store()
        try:
            assert isinstance(get_stock_store(), SqlAlchemyStockStore)
        finally:
            get_settings.cache_clear()
            reset_stock_store()

    def test_override(self):
        store = MemoryStockStore()
        set_stock_store(store)
        try:
            assert get_stock_store() is store
        finally:
            reset_stock_store()

    def test_concurrent_first_use_builds_one_store(self, monkeypatch):
        import checkout.inventory.stock as stock_module
        from checkout.config import get_settings

        def slow_memory_store():
            time.sleep(0.01)
            return MemoryStockStore()

        monkeypatch.delenv("CHECKOUT_STOCK_DATABASE_URI", raising=False)
        monkeypatch.setattr(stock_module, "MemoryStockStore", slow_memory_store)
        get_settings.cache_clear()
        reset_stock_store()

        start = threading.Barrier(8)
        seen = []
        seen_lock = threading.Lock()

        def first_use():
            start.wait()
            store = get_stock_store()
            with seen_lock:
                seen.append(store)

        threads = [threading.Thread(target=first_use) for _ in range(8)]
        try:
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        finally:
            reset_stock_store()

        assert len(seen) == 8
        assert len({id(store) for store in seen}) == 1


class TestRecordingStockStore:
    def test_memory_store_keeps_no_call_log(self):
        store = MemoryStockStore({("p1", None): 3})
        for _ in range(3):
            store.decrement_if_available("p1", None, 1)
            store.increment("p1", None, 1)

        assert not hasattr(store, "calls")

    def test_records_decrements_and_increments_in_order(self):
        store = RecordingStockStore({("p1", "v1"): 1})

        store.decrement_if_available("p1", "v1", 1)
        store.decrement_if_available("p1", "v1", 1)
        store.increment("p1", "v1", 1)

        assert store.calls == [
            {"method": "decrement_if_available", "key": ("p1", "v1"), "quantity": 1},
            {"method": "decrement_if_available", "key": ("p1", "v1"), "quantity": 1},
            {"method": "increment", "key": ("p1", "v1"), "quantity": 1},
        ]
        assert store.level("p1", "v1") == 1

    def test_seeding_levels_is_not_recorded(self):
        store = RecordingStockStore({("p1", None): 2})

        assert store.calls == []
        store.decrement_if_available("p1", None, 1)
        store.reset_calls()
        assert store.calls == []
        assert store.level("p1") == 1
