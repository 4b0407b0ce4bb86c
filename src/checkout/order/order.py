"""Order aggregate: the persisted outcome of a successful checkout.

Everything on an order is a snapshot taken at commit time: item titles,
prices, the deal that applied, the discount breakdown, the exchange rate.
Later catalogue or pricing changes never reach back into placed orders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from checkout.domain import checkout
from checkout.order.events import OrderPlaced
from checkout.shared.payer import Payer


class OrderStatus(Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentStatus(Enum):
    UNPAID = "Unpaid"
    PENDING = "Pending"
    PAID = "Paid"


@checkout.value_object(part_of="Order")
class ShippingAddress:
    """Where the order ships, as entered at checkout."""

    full_name = String(required=True, max_length=120)
    phone = String(required=True, max_length=40)
    address_line1 = String(required=True, max_length=255)
    address_line2 = String(max_length=255)
    city = String(required=True, max_length=100)
    state = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@checkout.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    variant_id = String(max_length=50)
    variant_sku = String(max_length=50)
    variant_size = String(max_length=50)
    variant_color = String(max_length=50)
    title = String(required=True, max_length=255)
    slug = String(max_length=200)
    image = String(max_length=1000)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    original_unit_price = Float(min_value=0.0)
    deal_label = String(max_length=50)


@checkout.aggregate
class Order:
    customer_id = Identifier()
    guest_email = String(max_length=320)
    items = HasMany(OrderItem)
    shipping_address = ValueObject(ShippingAddress)
    payment_method = String(required=True, max_length=20)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    is_paid = Boolean(default=False)
    order_status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    currency = String(required=True, max_length=3)
    exchange_rate = Float()
    coupon_code = String(max_length=50)
    coupon_discount_amount = Float(default=0.0)
    promotion_id = Identifier()
    promotion_name = String(max_length=120)
    promotion_discount_amount = Float(default=0.0)
    items_subtotal = Float(default=0.0)
    discount_amount = Float(default=0.0)
    shipping_amount = Float(default=0.0)
    tax_amount = Float(default=0.0)
    total_amount = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        items,
        shipping_address,
        payment_method,
        payment_status,
        currency,
        totals,
        payer: Payer,
        exchange_rate=None,
        coupon_code=None,
        promotion_id=None,
        promotion_name=None,
    ):
        """Build a pending order and raise ``OrderPlaced``.

        Args:
            items: List of dicts with the OrderItem fields.
            shipping_address: Dict with the ShippingAddress fields.
            totals: Dict with items_subtotal, coupon_discount_amount,
                promotion_discount_amount, discount_amount, shipping_amount,
                tax_amount and total_amount.
            payer: Customer id or guest email placing the order.
        """
        now = datetime.now(UTC)
        order = cls(
            customer_id=payer.customer_id,
            guest_email=None if payer.customer_id else payer.guest_email,
            items=[OrderItem(**item) for item in items],
            shipping_address=ShippingAddress(**shipping_address),
            payment_method=payment_method,
            payment_status=payment_status,
            is_paid=False,
            order_status=OrderStatus.PENDING.value,
            currency=currency,
            exchange_rate=exchange_rate,
            coupon_code=coupon_code,
            promotion_id=promotion_id,
            promotion_name=promotion_name,
            created_at=now,
            updated_at=now,
            **totals,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=order.customer_id,
                guest_email=order.guest_email,
                payment_method=payment_method,
                currency=currency,
                coupon_code=coupon_code,
                items_subtotal=order.items_subtotal,
                discount_amount=order.discount_amount,
                shipping_amount=order.shipping_amount,
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    def cancel(self):
        self.order_status = OrderStatus.CANCELLED.value
        self.updated_at = datetime.now(UTC)


@checkout.repository(part_of=Order)
class OrderRepository:
    def coupon_uses(self, code: str, payer: Payer) -> int:
        """Count the payer's non-cancelled orders placed with ``code``."""
        payer_filter = payer.as_filter()
        if not payer_filter:
            return 0

        orders = self._dao.query.filter(coupon_code=code, **payer_filter).limit(10_000).all().items
        return sum(1 for order in orders if order.order_status != OrderStatus.CANCELLED.value)
