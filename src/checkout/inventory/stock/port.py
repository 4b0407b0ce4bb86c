"""Stock store port (abstract interface).

Reservations must be a single conditional update inside the store, never a
read followed by a write in the caller: the store's conditional decrement is
the only concurrency control checkout relies on.
"""

from abc import ABC, abstractmethod

# Stock that belongs to the product itself rather than to one of its variants
PRODUCT_LEVEL = ""


def stock_key(product_id, variant_id=None) -> tuple[str, str]:
    return (str(product_id), str(variant_id) if variant_id else PRODUCT_LEVEL)


class StockStore(ABC):
    """Abstract stock store interface."""

    @abstractmethod
    def level(self, product_id: str, variant_id: str | None = None) -> int:
        """Return the units currently on hand (0 for unknown keys)."""
        ...

    @abstractmethod
    def set_level(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        """Overwrite the level. Used for seeding and admin corrections."""
        ...

    @abstractmethod
    def decrement_if_available(self, product_id: str, variant_id: str | None, quantity: int) -> bool:
        """Atomically take ``quantity`` units if at least that many are on hand.

        Returns False, without changing anything, when stock is short or the
        key is unknown.
        """
        ...

    @abstractmethod
    def increment(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        """Give ``quantity`` units back. Used to compensate a reservation."""
        ...
