"""Discount resolution: one coupon, then at most one promotion.

Rules:
    * A coupon that fails validation never aborts pricing; it is reported
      back with ``ok=False`` and a message, and contributes nothing.
    * A valid *fixed* coupon blocks promotions. A percent coupon does not.
    * Promotions never stack: the first one (priority desc, newest first)
      that yields a positive discount wins.
    * A promotion is capped by what is left after the coupon, so the combined
      discount never exceeds the items subtotal.
"""

from dataclasses import dataclass
from datetime import datetime

import structlog
from protean.utils.globals import current_domain

from checkout.config import get_settings
from checkout.errors import DiscountRejected
from checkout.order.order import Order
from checkout.pricing.coupon import Coupon, normalize_code
from checkout.pricing.enums import DiscountScope, DiscountType
from checkout.pricing.promotion import Promotion
from checkout.shared.money import money_sum, round2
from checkout.shared.payer import Payer

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EligibleLine:
    """The parts of a priced line that discount scopes look at."""

    product_id: str
    category_id: str
    line_total: float


@dataclass(frozen=True)
class CouponOutcome:
    code: str
    ok: bool
    message: str | None = None
    discount_amount: float = 0.0
    discount_type: str | None = None


@dataclass(frozen=True)
class PromotionOutcome:
    id: str
    name: str
    discount_amount: float


@dataclass(frozen=True)
class DiscountBreakdown:
    coupon: CouponOutcome | None = None
    promotion: PromotionOutcome | None = None

    @property
    def coupon_discount_amount(self) -> float:
        return self.coupon.discount_amount if self.coupon and self.coupon.ok else 0.0

    @property
    def promotion_discount_amount(self) -> float:
        return self.promotion.discount_amount if self.promotion else 0.0

    @property
    def discount_amount(self) -> float:
        return round2(self.coupon_discount_amount + self.promotion_discount_amount)

    @property
    def applied_coupon_code(self) -> str | None:
        return self.coupon.code if self.coupon and self.coupon.ok else None


def eligible_subtotal(rule, lines) -> float:
    """Sum the (already rounded) totals of lines inside the rule's scope."""
    if rule.applies_to == DiscountScope.CATEGORIES.value:
        categories = rule.category_id_set
        return money_sum(line.line_total for line in lines if line.category_id in categories)
    if rule.applies_to == DiscountScope.PRODUCTS.value:
        products = rule.product_id_set
        return money_sum(line.line_total for line in lines if line.product_id in products)
    return money_sum(line.line_total for line in lines)


def scoped_discount(rule, eligible: float) -> float:
    """Discount granted by a coupon or promotion on ``eligible`` subtotal.

    Percent rules take a share of the eligible subtotal, fixed rules grant
    their value; both are capped by ``max_discount_amount`` and then by the
    eligible subtotal itself.
    """
    if rule.discount_type == DiscountType.PERCENT.value:
        amount = round2(eligible * float(rule.value or 0) / 100)
    else:
        amount = round2(float(rule.value or 0))

    if rule.max_discount_amount is not None:
        amount = min(amount, float(rule.max_discount_amount))

    return max(0.0, min(amount, eligible))


def validate_coupon(coupon: Coupon | None, items_subtotal: float, lines, payer: Payer, now: datetime) -> float:
    """Return the coupon's discount, or raise DiscountRejected explaining why it does not apply."""
    if coupon is None or not coupon.is_active:
        raise DiscountRejected("Invalid coupon")

    if coupon.starts_at is not None and coupon.starts_at > now:
        raise DiscountRejected("Coupon is not active yet")

    if coupon.expires_at is not None and coupon.expires_at < now:
        raise DiscountRejected("Coupon expired")

    if coupon.usage_limit is not None and (coupon.used_count or 0) >= coupon.usage_limit:
        raise DiscountRejected("Coupon usage limit reached")

    if coupon.usage_limit_per_customer:
        if not payer.is_identified:
            raise DiscountRejected("Enter email to apply this coupon")

        used = current_domain.repository_for(Order).coupon_uses(coupon.code, payer)
        if used >= coupon.usage_limit_per_customer:
            raise DiscountRejected("Coupon usage limit reached")

    if coupon.min_order_amount is not None and items_subtotal < coupon.min_order_amount:
        raise DiscountRejected(f"Min order {coupon.min_order_amount:.2f}")

    eligible = eligible_subtotal(coupon, lines)
    if eligible <= 0:
        raise DiscountRejected("Coupon is not applicable to your cart")

    return scoped_discount(coupon, eligible)


def apply_coupon(code: str, items_subtotal: float, lines, payer: Payer, now: datetime) -> CouponOutcome:
    normalized = normalize_code(code)
    coupon = current_domain.repository_for(Coupon).find_by_code(normalized)

    try:
        amount = validate_coupon(coupon, items_subtotal, lines, payer, now)
    except DiscountRejected as exc:
        logger.info("coupon_rejected", code=normalized, reason=exc.message)
        return CouponOutcome(code=normalized, ok=False, message=exc.message)

    return CouponOutcome(
        code=coupon.code,
        ok=True,
        discount_amount=amount,
        discount_type=coupon.discount_type,
    )


def select_promotion(items_subtotal: float, coupon_discount: float, lines, now: datetime) -> PromotionOutcome | None:
    promotions = current_domain.repository_for(Promotion).eligible(
        items_subtotal, now, limit=get_settings().promotion_scan_limit
    )
    remaining_payable = round2(max(0.0, items_subtotal - coupon_discount))

    for promotion in promotions:
        eligible = eligible_subtotal(promotion, lines)
        if eligible <= 0:
            continue

        amount = min(scoped_discount(promotion, eligible), remaining_payable)
        if amount <= 0:
            continue

        return PromotionOutcome(id=str(promotion.id), name=promotion.name or "", discount_amount=amount)

    return None


def resolve_discounts(
    coupon_code: str | None,
    items_subtotal: float,
    lines,
    payer: Payer,
    now: datetime,
) -> DiscountBreakdown:
    coupon = None
    if coupon_code and coupon_code.strip():
        coupon = apply_coupon(coupon_code, items_subtotal, lines, payer, now)

    coupon_blocks_promotions = bool(coupon and coupon.ok and coupon.discount_type == DiscountType.FIXED.value)

    promotion = None
    if not coupon_blocks_promotions and items_subtotal > 0:
        coupon_discount = coupon.discount_amount if coupon and coupon.ok else 0.0
        promotion = select_promotion(items_subtotal, coupon_discount, lines, now)

    return DiscountBreakdown(coupon=coupon, promotion=promotion)
