"""In-memory stock store that records every reservation call, for tests.

Keeps the same levels and locking as ``MemoryStockStore`` and additionally
appends each decrement and increment to ``calls`` so tests can assert on
what the saga did, and in which order.
"""

from checkout.inventory.stock.memory_adapter import MemoryStockStore
from checkout.inventory.stock.port import stock_key


class RecordingStockStore(MemoryStockStore):
    def __init__(self, levels: dict | None = None) -> None:
        self.calls: list[dict] = []
        super().__init__(levels)

    def decrement_if_available(self, product_id, variant_id, quantity):
        self.calls.append(
            {"method": "decrement_if_available", "key": stock_key(product_id, variant_id), "quantity": quantity}
        )
        return super().decrement_if_available(product_id, variant_id, quantity)

    def increment(self, product_id, variant_id, quantity):
        self.calls.append({"method": "increment", "key": stock_key(product_id, variant_id), "quantity": quantity})
        super().increment(product_id, variant_id, quantity)

    def reset_calls(self) -> None:
        self.calls.clear()
