"""Quote builder: price a cart without touching inventory.

``price_cart`` is the single pricing pipeline. The storefront calls
``build_quote`` on every cart, address or coupon change; order placement
calls ``price_cart`` again from the raw request, so both paths always agree.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from checkout.catalogue.lookup import CatalogLine, load_products, resolve_line
from checkout.inventory.stock import get_stock_store
from checkout.inventory.stock.port import StockStore
from checkout.pricing.deals import AppliedDeal, deal_price, load_best_deals
from checkout.pricing.discounts import DiscountBreakdown, EligibleLine, resolve_discounts
from checkout.quote.schemas import (
    CouponEcho,
    DealDescriptor,
    DeliveryEtaSchema,
    PromotionEcho,
    Quote,
    QuoteLine,
    QuoteRequest,
    parse_request,
)
from checkout.shared.email import normalize_guest_email
from checkout.shared.money import money_sum, round2
from checkout.shared.payer import Payer
from checkout.shipping.calculator import ShippingQuote, compute_delivery_eta, compute_shipping
from checkout.shipping.settings import ShippingSettings

logger = structlog.get_logger(__name__)


@dataclass
class PricedLine:
    catalog: CatalogLine
    unit_price: float
    original_unit_price: float | None
    line_total: float
    deal: AppliedDeal | None = None

    def to_quote_line(self) -> QuoteLine:
        deal = None
        if self.deal is not None:
            deal = DealDescriptor(
                id=self.deal.id,
                name=self.deal.name,
                label=self.deal.label,
                expires_at=self.deal.expires_at,
            )
        return QuoteLine(
            product_id=self.catalog.product_id,
            variant_id=self.catalog.variant_id,
            quantity=self.catalog.quantity,
            title=self.catalog.title,
            slug=self.catalog.slug,
            image=self.catalog.image,
            unit_price=self.unit_price,
            original_unit_price=self.original_unit_price,
            line_total=self.line_total,
            available_stock=self.catalog.available_stock,
            is_available=self.catalog.is_available,
            message=self.catalog.message,
            deal=deal,
        )


@dataclass
class PricedCart:
    """Everything computed for one cart, before it is shaped into a Quote."""

    lines: list[PricedLine]
    payer: Payer
    items_subtotal: float
    discounts: DiscountBreakdown
    shipping: ShippingQuote
    quote: Quote

    @property
    def unavailable_lines(self) -> list[PricedLine]:
        return [line for line in self.lines if not line.catalog.is_available]


def price_line(catalog: CatalogLine, deal: AppliedDeal | None) -> PricedLine:
    if not catalog.found:
        return PricedLine(catalog=catalog, unit_price=0.0, original_unit_price=None, line_total=0.0)

    original = round2(catalog.unit_price)
    if deal is None:
        return PricedLine(
            catalog=catalog,
            unit_price=original,
            original_unit_price=None,
            line_total=round2(original * catalog.quantity),
        )

    unit_price = deal_price(original, deal.discount_type, deal.value)
    return PricedLine(
        catalog=catalog,
        unit_price=unit_price,
        original_unit_price=original,
        line_total=round2(unit_price * catalog.quantity),
        deal=deal,
    )


def _resolve_payer(customer_id, guest_email) -> Payer:
    if customer_id:
        return Payer(customer_id=str(customer_id))
    return Payer(guest_email=normalize_guest_email(guest_email))


def _empty_quote(request: QuoteRequest) -> Quote:
    coupon = None
    if request.coupon_code and request.coupon_code.strip():
        coupon = CouponEcho(code=request.coupon_code.strip().upper(), ok=False, message="Cart is empty")
    return Quote(coupon=coupon)


def price_cart(
    request: QuoteRequest,
    customer_id=None,
    now: datetime | None = None,
    stock_store: StockStore | None = None,
) -> PricedCart:
    now = now or datetime.now(UTC)
    stock_store = stock_store or get_stock_store()
    payer = _resolve_payer(customer_id, request.guest_email)

    products = load_products(item.product_id for item in request.items)
    deals = load_best_deals(products.keys(), now)

    lines = []
    for item in request.items:
        catalog = resolve_line(
            item.product_id, item.variant_id, item.quantity, products.get(item.product_id), stock_store
        )
        lines.append(price_line(catalog, deals.get(catalog.product_id) if catalog.found else None))

    items_subtotal = money_sum(line.line_total for line in lines)
    eligible = [
        EligibleLine(
            product_id=line.catalog.product_id,
            category_id=line.catalog.category_id,
            line_total=line.line_total,
        )
        for line in lines
    ]
    discounts = resolve_discounts(request.coupon_code, items_subtotal, eligible, payer, now)

    shipping_settings = current_domain.repository_for(ShippingSettings).current()
    shipping_subtotal = round2(max(0.0, items_subtotal - discounts.coupon_discount_amount))
    shipping = compute_shipping(items_subtotal, shipping_subtotal, request.city, shipping_settings)
    eta = compute_delivery_eta(request.city, shipping_settings)

    tax_amount = 0.0
    total_amount = round2(items_subtotal - discounts.discount_amount + shipping.amount + tax_amount)

    coupon = None
    if discounts.coupon is not None:
        coupon = CouponEcho(code=discounts.coupon.code, ok=discounts.coupon.ok, message=discounts.coupon.message)
    promotion = None
    if discounts.promotion is not None:
        promotion = PromotionEcho(id=discounts.promotion.id, name=discounts.promotion.name)

    quote = Quote(
        lines=[line.to_quote_line() for line in lines],
        items_subtotal=items_subtotal,
        discount_amount=discounts.discount_amount,
        coupon_discount_amount=discounts.coupon_discount_amount,
        promotion_discount_amount=discounts.promotion_discount_amount,
        shipping_amount=shipping.amount,
        shipping_free_above_subtotal=shipping.free_above_subtotal,
        shipping_remaining_for_free=shipping.remaining_for_free,
        shipping_is_free=shipping.is_free,
        tax_amount=tax_amount,
        total_amount=total_amount,
        delivery_eta=DeliveryEtaSchema(min_days=eta.min_days, max_days=eta.max_days, text=eta.text),
        coupon=coupon,
        promotion=promotion,
    )
    return PricedCart(
        lines=lines,
        payer=payer,
        items_subtotal=items_subtotal,
        discounts=discounts,
        shipping=shipping,
        quote=quote,
    )


def build_quote(request, customer_id=None, now: datetime | None = None, stock_store: StockStore | None = None) -> Quote:
    """Price ``request`` (a QuoteRequest or a plain dict) for display.

    Reads catalogue, deals, discounts and shipping rules; never writes.
    Unavailable lines and rejected coupons are reported on the quote rather
    than raised.

    Raises:
        ValidationError: the request is malformed.
    """
    request = parse_request(QuoteRequest, request)
    if not request.items:
        return _empty_quote(request)

    priced = price_cart(request, customer_id=customer_id, now=now, stock_store=stock_store)
    logger.debug(
        "quote_built",
        lines=len(priced.lines),
        items_subtotal=priced.items_subtotal,
        total_amount=priced.quote.total_amount,
    )
    return priced.quote
