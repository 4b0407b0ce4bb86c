"""Coupon aggregate: a customer-entered code granting a discount."""

import json
from datetime import UTC, datetime

from protean.exceptions import ExpectedVersionError, ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from checkout.domain import checkout
from checkout.pricing.enums import DiscountScope, DiscountType

REDEEM_ATTEMPTS = 5


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@checkout.aggregate
class Coupon:
    code = String(required=True, max_length=50, unique=True)
    discount_type = String(choices=DiscountType, default=DiscountType.PERCENT.value)
    value = Float(required=True, min_value=0.0)
    min_order_amount = Float(min_value=0.0)
    max_discount_amount = Float(min_value=0.0)
    starts_at = DateTime()
    expires_at = DateTime()
    usage_limit = Integer(min_value=0)
    usage_limit_per_customer = Integer(min_value=0)
    used_count = Integer(default=0)
    applies_to = String(choices=DiscountScope, default=DiscountScope.ALL.value)
    category_ids = Text()  # JSON array
    product_ids = Text()  # JSON array
    is_active = Boolean(default=True)
    created_at = DateTime()

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        value,
        min_order_amount=None,
        max_discount_amount=None,
        starts_at=None,
        expires_at=None,
        usage_limit=None,
        usage_limit_per_customer=None,
        applies_to=DiscountScope.ALL.value,
        category_ids=None,
        product_ids=None,
        is_active=True,
    ):
        code = normalize_code(code)
        if not code:
            raise ValidationError({"code": ["Coupon code is required"]})
        return cls(
            code=code,
            discount_type=discount_type,
            value=value,
            min_order_amount=min_order_amount,
            max_discount_amount=max_discount_amount,
            starts_at=starts_at,
            expires_at=expires_at,
            usage_limit=usage_limit,
            usage_limit_per_customer=usage_limit_per_customer,
            used_count=0,
            applies_to=applies_to,
            category_ids=json.dumps([str(i) for i in category_ids or []]),
            product_ids=json.dumps([str(i) for i in product_ids or []]),
            is_active=is_active,
            created_at=datetime.now(UTC),
        )

    @property
    def category_id_set(self) -> set[str]:
        return set(json.loads(self.category_ids)) if self.category_ids else set()

    @property
    def product_id_set(self) -> set[str]:
        return set(json.loads(self.product_ids)) if self.product_ids else set()

    def redeem(self):
        """Count one more use. Usage is never handed back, even on cancellation."""
        self.used_count = (self.used_count or 0) + 1


@checkout.repository(part_of=Coupon)
class CouponRepository:
    def find_by_code(self, code) -> Coupon | None:
        code = normalize_code(code)
        if not code:
            return None
        return next(iter(self._dao.query.filter(code=code).all().items), None)

    def redeem(self, code, attempts: int = REDEEM_ATTEMPTS) -> Coupon | None:
        """Increment ``used_count`` by one, retrying on a concurrent update.

        Each attempt reloads the coupon, so a commit that lost the version
        race counts on top of the winner's increment instead of overwriting it.

        Raises:
            ExpectedVersionError: every attempt lost the race.
        """
        for attempt in range(1, attempts + 1):
            coupon = self.find_by_code(code)
            if coupon is None:
                return None
            coupon.redeem()
            try:
                self.add(coupon)
                return coupon
            except ExpectedVersionError:
                if attempt == attempts:
                    raise
        return None
