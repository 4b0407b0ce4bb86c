"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from checkout.domain import checkout


@checkout.event(part_of="Order")
class OrderPlaced:
    """Stock was reserved and an order was persisted at checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()
    guest_email = String(max_length=320)
    payment_method = String(required=True)
    currency = String(required=True)
    coupon_code = String(max_length=50)
    items_subtotal = Float(required=True)
    discount_amount = Float()
    shipping_amount = Float()
    total_amount = Float(required=True)
    placed_at = DateTime(required=True)
