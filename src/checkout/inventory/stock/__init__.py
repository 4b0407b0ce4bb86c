"""Stock store factory.

Provides get_stock_store() / set_stock_store() to swap implementations:
- MemoryStockStore for development and testing
- SqlAlchemyStockStore when CHECKOUT_STOCK_DATABASE_URI is set
"""

import threading

from checkout.config import get_settings
from checkout.inventory.stock.memory_adapter import MemoryStockStore
from checkout.inventory.stock.port import StockStore

_current_store: StockStore | None = None
_store_lock = threading.Lock()


def get_stock_store() -> StockStore:
    """Return the active stock store, building the configured default on first use."""
    global _current_store
    if _current_store is None:
        with _store_lock:
            if _current_store is None:
                uri = get_settings().stock_database_uri
                if uri:
                    from checkout.inventory.stock.sqlalchemy_adapter import SqlAlchemyStockStore

                    _current_store = SqlAlchemyStockStore(uri)
                else:
                    _current_store = MemoryStockStore()
    return _current_store


def set_stock_store(store: StockStore) -> None:
    """Override the active stock store (useful for tests)."""
    global _current_store
    with _store_lock:
        _current_store = store


def reset_stock_store() -> None:
    global _current_store
    with _store_lock:
        _current_store = None
