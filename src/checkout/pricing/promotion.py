"""Promotion aggregate: an automatic, code-less cart discount chosen by priority."""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from checkout.domain import checkout
from checkout.pricing.enums import DiscountScope, DiscountType


@checkout.aggregate
class Promotion:
    name = String(required=True, max_length=120)
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENT.value)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(default=0.0, min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    priority = Integer(default=0)
    starts_at = DateTime()
    expires_at = DateTime()
    applies_to = String(choices=DiscountScope, default=DiscountScope.ALL.value)
    category_ids = Text()  # JSON array
    product_ids = Text()  # JSON array
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        discount_type,
        value,
        min_order_amount=0.0,
        max_discount_amount=None,
        priority=0,
        starts_at=None,
        expires_at=None,
        applies_to=DiscountScope.ALL.value,
        category_ids=None,
        product_ids=None,
        is_active=True,
        created_at=None,
    ):
        return cls(
            name=name,
            discount_type=discount_type,
            value=value,
            min_order_amount=min_order_amount or 0.0,
            max_discount_amount=max_discount_amount,
            priority=priority,
            starts_at=starts_at,
            expires_at=expires_at,
            applies_to=applies_to,
            category_ids=json.dumps([str(i) for i in category_ids or []]),
            product_ids=json.dumps([str(i) for i in product_ids or []]),
            is_active=is_active,
            created_at=created_at or datetime.now(UTC),
        )

    @property
    def category_id_set(self) -> set[str]:
        return set(json.loads(self.category_ids)) if self.category_ids else set()

    @property
    def product_id_set(self) -> set[str]:
        return set(json.loads(self.product_ids)) if self.product_ids else set()

    def is_running(self, now) -> bool:
        if not self.is_active:
            return False
        if self.starts_at is not None and self.starts_at > now:
            return False
        return self.expires_at is None or self.expires_at > now


@checkout.repository(part_of=Promotion)
class PromotionRepository:
    def eligible(self, items_subtotal, now, limit) -> list[Promotion]:
        """Running promotions whose minimum order is met, best first."""
        candidates = self._dao.query.filter(is_active=True).limit(10_000).all().items
        eligible = [
            promo
            for promo in candidates
            if promo.is_running(now) and (promo.min_order_amount or 0.0) <= items_subtotal
        ]
        eligible.sort(
            key=lambda p: (p.priority or 0, p.created_at.timestamp() if p.created_at else 0),
            reverse=True,
        )
        return eligible[:limit]
