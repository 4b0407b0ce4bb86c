"""Order placement: the server-authoritative checkout commit.

Steps, in order (nothing is mutated before step 5):
    1. Parse the request; reject an empty cart.
    2. Check currency and payment method against the stored settings.
    3. Identify the payer (customer id or guest email).
    4. Re-price the cart from raw inputs; any unavailable line aborts.
    5. Reserve stock for every line through the reservation saga.
    6. Save the order; on failure give the stock back.
    7. Count the coupon redemption.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from checkout.config import get_settings
from checkout.errors import PersistenceFailure, ReservationConflict, UnavailableLine
from checkout.inventory.saga import Reservation, ReservationSaga
from checkout.inventory.stock import get_stock_store
from checkout.order.order import Order
from checkout.payments.policy import check_currency, check_method_enabled, payment_status_for
from checkout.payments.settings import PaymentSettings
from checkout.pricing.coupon import Coupon
from checkout.quote.builder import PricedCart, price_cart
from checkout.quote.schemas import PlaceOrderRequest, parse_request
from checkout.shared.email import normalize_guest_email

logger = structlog.get_logger(__name__)

FALLBACK_IMAGE = "/next.svg"


def _order_items(priced: PricedCart) -> list[dict]:
    return [
        {
            "product_id": line.catalog.product_id,
            "variant_id": line.catalog.variant_id or None,
            "variant_sku": line.catalog.variant_sku or None,
            "variant_size": line.catalog.variant_size or None,
            "variant_color": line.catalog.variant_color or None,
            "title": line.catalog.title,
            "slug": line.catalog.slug or None,
            "image": line.catalog.image or FALLBACK_IMAGE,
            "quantity": line.catalog.quantity,
            "unit_price": line.unit_price,
            "original_unit_price": line.original_unit_price,
            "deal_label": line.deal.label if line.deal else None,
        }
        for line in priced.lines
    ]


def _totals(priced: PricedCart) -> dict:
    quote = priced.quote
    return {
        "items_subtotal": quote.items_subtotal,
        "coupon_discount_amount": quote.coupon_discount_amount,
        "promotion_discount_amount": quote.promotion_discount_amount,
        "discount_amount": quote.discount_amount,
        "shipping_amount": quote.shipping_amount,
        "tax_amount": quote.tax_amount,
        "total_amount": quote.total_amount,
    }


def _reject_unavailable(priced: PricedCart) -> None:
    unavailable = priced.unavailable_lines
    if not unavailable:
        return

    line = unavailable[0].catalog
    logger.info(
        "order_rejected_unavailable",
        product_id=line.product_id,
        variant_id=line.variant_id,
        requested=line.quantity,
        available=line.available_stock,
    )
    raise UnavailableLine(
        f"{line.title}: {line.message}" if line.found else line.message,
        product_id=line.product_id,
        variant_id=line.variant_id,
    )


def _redeem_coupon(code: str, order_id: str) -> None:
    """Count the coupon use. The order is already placed, so failures are only logged."""
    try:
        current_domain.repository_for(Coupon).redeem(code)
    except Exception:
        logger.exception("coupon_redeem_failed", code=code, order_id=order_id)


def place_order(request, customer_id=None, now: datetime | None = None, stock_store=None) -> str:
    """Commit a checkout and return the new order's id.

    Raises:
        ValidationError: malformed request, empty cart or no payer identity.
        PaymentConfigurationError: currency or method not accepted.
        UnavailableLine: a product is missing or short on stock.
        ReservationConflict: stock ran out while reserving; nothing is held.
        PersistenceFailure: the order could not be saved; stock was returned.
    """
    if isinstance(request, dict) and not request.get("items"):
        raise ValidationError({"items": ["Cart is empty"]})
    request = parse_request(PlaceOrderRequest, request)

    now = now or datetime.now(UTC)
    stock_store = stock_store or get_stock_store()
    settings = get_settings()

    currency = request.currency or settings.base_currency
    exchange_rate = check_currency(request.payment_method, currency, request.exchange_rate, settings)
    check_method_enabled(request.payment_method, current_domain.repository_for(PaymentSettings).current())

    if not customer_id and not normalize_guest_email(request.guest_email):
        raise ValidationError({"guest_email": ["Email is required"]})

    priced = price_cart(request.to_quote_request(), customer_id=customer_id, now=now, stock_store=stock_store)

    _reject_unavailable(priced)

    saga = ReservationSaga(stock_store)
    reservations = [
        Reservation(
            product_id=line.catalog.product_id,
            variant_id=line.catalog.stock_variant_id,
            quantity=line.catalog.quantity,
        )
        for line in priced.lines
    ]
    if not saga.reserve_all(reservations):
        raise ReservationConflict(failed_line=saga.failed_line)

    coupon_code = priced.discounts.applied_coupon_code
    promotion = priced.discounts.promotion
    try:
        order = Order.create(
            items=_order_items(priced),
            shipping_address=request.shipping_address.model_dump(),
            payment_method=request.payment_method,
            payment_status=payment_status_for(request.payment_method),
            currency=currency,
            totals=_totals(priced),
            payer=priced.payer,
            exchange_rate=exchange_rate,
            coupon_code=coupon_code,
            promotion_id=promotion.id if promotion else None,
            promotion_name=promotion.name if promotion else None,
        )
        current_domain.repository_for(Order).add(order)
    except Exception as exc:
        logger.exception("order_persist_failed", reservations=len(saga.applied))
        saga.rollback()
        raise PersistenceFailure() from exc

    if coupon_code:
        _redeem_coupon(coupon_code, str(order.id))

    logger.info(
        "order_placed",
        order_id=str(order.id),
        total_amount=order.total_amount,
        payment_method=order.payment_method,
        currency=currency,
        coupon_code=coupon_code,
    )
    return str(order.id)
