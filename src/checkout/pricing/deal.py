"""Deal aggregate: a time-boxed automatic price override on a set of products."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from checkout.domain import checkout
from checkout.pricing.enums import DiscountType


@checkout.aggregate
class Deal:
    name = String(required=True, max_length=120)
    product_ids = Text()  # JSON array of product ids
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENT.value)
    value = Float(required=True, min_value=0.0)
    priority = Integer(default=0)
    starts_at = DateTime(required=True)
    expires_at = DateTime(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        product_ids,
        discount_type,
        value,
        starts_at,
        expires_at,
        priority=0,
        is_active=True,
        created_at=None,
    ):
        if expires_at <= starts_at:
            raise ValidationError({"expires_at": ["Deal must end after it starts"]})
        return cls(
            name=name,
            product_ids=json.dumps([str(pid) for pid in product_ids]),
            discount_type=discount_type,
            value=value,
            priority=priority,
            starts_at=starts_at,
            expires_at=expires_at,
            is_active=is_active,
            created_at=created_at or datetime.now(UTC),
        )

    @property
    def product_id_list(self) -> list[str]:
        return json.loads(self.product_ids) if self.product_ids else []

    def is_running(self, now) -> bool:
        return bool(self.is_active) and self.starts_at <= now < self.expires_at


@checkout.repository(part_of=Deal)
class DealRepository:
    def running_for_products(self, product_ids, now, limit) -> list[Deal]:
        """Running deals touching any of ``product_ids``, best first.

        Best means highest priority, then most recently created.
        """
        wanted = {str(pid) for pid in product_ids}
        if not wanted:
            return []

        candidates = self._dao.query.filter(is_active=True).limit(10_000).all().items
        running = [
            deal for deal in candidates if deal.is_running(now) and wanted.intersection(deal.product_id_list)
        ]
        running.sort(key=lambda d: (d.priority or 0, d.created_at.timestamp() if d.created_at else 0), reverse=True)
        return running[:limit]
