"""Checkout bounded context: cart pricing, stock reservation and order placement.

Prices carts from catalogue prices, deals, coupons and promotions, quotes
shipping from city rules, and turns a priced cart into a persisted Order
after reserving stock line by line.
"""

import structlog
from protean.domain import Domain

checkout = Domain(name="checkout")

logger = structlog.get_logger(__name__)
