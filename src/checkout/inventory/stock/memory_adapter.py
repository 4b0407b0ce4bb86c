"""Process-local stock store for development and tests.

The lock belongs to the store, the way a row lock belongs to a database: it
makes ``decrement_if_available`` one indivisible check-and-update.
"""

import threading

from checkout.inventory.stock.port import StockStore, stock_key


class MemoryStockStore(StockStore):
    def __init__(self, levels: dict | None = None) -> None:
        self._levels: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()
        for (product_id, variant_id), quantity in (levels or {}).items():
            self.set_level(product_id, variant_id, quantity)

    def level(self, product_id, variant_id=None):
        with self._lock:
            return self._levels.get(stock_key(product_id, variant_id), 0)

    def set_level(self, product_id, variant_id, quantity):
        if quantity < 0:
            raise ValueError("Stock level cannot be negative")
        with self._lock:
            self._levels[stock_key(product_id, variant_id)] = int(quantity)

    def decrement_if_available(self, product_id, variant_id, quantity):
        key = stock_key(product_id, variant_id)
        with self._lock:
            on_hand = self._levels.get(key)
            if on_hand is None or on_hand < quantity:
                return False
            self._levels[key] = on_hand - quantity
            return True

    def increment(self, product_id, variant_id, quantity):
        key = stock_key(product_id, variant_id)
        with self._lock:
            self._levels[key] = self._levels.get(key, 0) + quantity
