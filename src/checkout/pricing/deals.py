"""Deal resolution: pick the best running deal per product and apply it."""

from dataclasses import dataclass
from datetime import datetime

from protean.utils.globals import current_domain

from checkout.config import get_settings
from checkout.pricing.deal import Deal
from checkout.pricing.enums import DiscountType
from checkout.shared.money import round2


@dataclass(frozen=True)
class AppliedDeal:
    id: str
    name: str
    discount_type: str
    value: float
    label: str
    expires_at: datetime | None


def deal_price(original: float, discount_type: str, value: float) -> float:
    original = max(0.0, float(original or 0))
    value = max(0.0, float(value or 0))

    if discount_type == DiscountType.PERCENT.value:
        pct = min(100.0, value)
        return round2(max(0.0, original * (1 - pct / 100)))

    return round2(max(0.0, original - value))


def deal_label(discount_type: str, value: float) -> str:
    if discount_type == DiscountType.PERCENT.value:
        return f"-{value:g}%"
    return f"-{value:.2f} off"


def best_deals_by_product(deals) -> dict[str, AppliedDeal]:
    """Map product id → deal, first seen wins.

    ``deals`` must already be ordered best first, so a product listed by
    several deals keeps the highest-priority, most recent one.
    """
    best: dict[str, AppliedDeal] = {}
    for deal in deals:
        if deal.discount_type not in (DiscountType.PERCENT.value, DiscountType.FIXED.value):
            continue
        applied = AppliedDeal(
            id=str(deal.id),
            name=deal.name or "",
            discount_type=deal.discount_type,
            value=float(deal.value),
            label=deal_label(deal.discount_type, float(deal.value)),
            expires_at=deal.expires_at,
        )
        for product_id in deal.product_id_list:
            if product_id and product_id not in best:
                best[product_id] = applied
    return best


def load_best_deals(product_ids, now: datetime) -> dict[str, AppliedDeal]:
    """Build this request's best-deal map. Never cached across requests."""
    deals = current_domain.repository_for(Deal).running_for_products(
        product_ids, now, limit=get_settings().deal_scan_limit
    )
    return best_deals_by_product(deals)
