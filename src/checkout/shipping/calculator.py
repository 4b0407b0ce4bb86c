"""Shipping fee and delivery estimate for a destination city."""

import re
from dataclasses import dataclass

from checkout.shared.money import round2
from checkout.shipping.settings import MAX_ETA_DAYS, CityRule, ShippingSettings

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ShippingQuote:
    amount: float
    free_above_subtotal: float | None
    remaining_for_free: float
    is_free: bool
    matched_city: str | None = None


@dataclass(frozen=True)
class DeliveryEta:
    min_days: int
    max_days: int
    text: str


def city_key(city: str | None) -> str:
    return _WHITESPACE.sub(" ", (city or "").strip()).lower()


def match_city_rule(settings: ShippingSettings, city: str | None) -> CityRule | None:
    key = city_key(city)
    if not key:
        return None
    return next((rule for rule in settings.ordered_city_rules() if city_key(rule.city) == key), None)


def _clamp_days(days) -> int:
    return min(MAX_ETA_DAYS, max(0, int(days or 0)))


def format_eta_text(min_days: int, max_days: int) -> str:
    if min_days <= 0 and max_days <= 0:
        return ""
    if min_days == max_days:
        return f"Delivery in {min_days} business day{'' if min_days == 1 else 's'}"
    low, high = sorted((min_days, max_days))
    return f"Delivery in {low}–{high} business days"


def compute_shipping(
    items_subtotal: float,
    shipping_subtotal: float | None,
    city: str | None,
    settings: ShippingSettings,
) -> ShippingQuote:
    """Fee for the order, free once ``shipping_subtotal`` reaches the threshold.

    ``shipping_subtotal`` is the items subtotal less the coupon discount only;
    promotion discounts do not count against the free-shipping threshold.
    """
    subtotal = max(0.0, shipping_subtotal if shipping_subtotal is not None else items_subtotal)
    rule = match_city_rule(settings, city)

    free_above = settings.free_above_subtotal
    if rule is not None and rule.free_above_subtotal is not None:
        free_above = rule.free_above_subtotal

    fee = rule.fee if rule is not None else settings.default_fee
    amount = round2(max(0.0, fee or 0.0))
    if free_above is not None and subtotal >= free_above:
        amount = 0.0

    remaining = round2(max(0.0, free_above - subtotal)) if free_above is not None else 0.0

    return ShippingQuote(
        amount=amount,
        free_above_subtotal=free_above,
        remaining_for_free=remaining,
        is_free=amount <= 0,
        matched_city=rule.city if rule is not None else None,
    )


def compute_delivery_eta(city: str | None, settings: ShippingSettings) -> DeliveryEta:
    rule = match_city_rule(settings, city)

    min_days = settings.eta_min_days
    max_days = settings.eta_max_days
    if rule is not None and rule.eta_min_days is not None:
        min_days = rule.eta_min_days
    if rule is not None and rule.eta_max_days is not None:
        max_days = rule.eta_max_days

    min_days = _clamp_days(min_days)
    max_days = _clamp_days(max_days)
    return DeliveryEta(min_days=min_days, max_days=max_days, text=format_eta_text(min_days, max_days))
