"""Pydantic contracts for quoting and placing orders.

Requests are parsed here before any pricing runs; ``parse_request`` turns a
pydantic failure into the domain's ``ValidationError`` so callers only ever
deal with one structural error type.
"""

from datetime import datetime
from typing import Literal

import pydantic
from protean.exceptions import ValidationError
from pydantic import BaseModel, Field, field_validator

from checkout.config import get_settings


# ---------------------------------------------------------------------------
# Request sub-models
# ---------------------------------------------------------------------------
class CartLineSchema(BaseModel):
    product_id: str = Field(min_length=1)
    variant_id: str = ""
    quantity: int = Field(ge=1)

    @field_validator("quantity")
    @classmethod
    def quantity_within_line_limit(cls, value: int) -> int:
        limit = get_settings().max_line_quantity
        if value > limit:
            raise ValueError(f"Quantity must be at most {limit}")
        return value


class PartialAddressSchema(BaseModel):
    city: str | None = Field(default=None, max_length=100)
    state: str | None = Field(default=None, max_length=100)
    country: str | None = Field(default=None, max_length=100)


class ShippingAddressSchema(BaseModel):
    full_name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=1, max_length=40)
    address_line1: str = Field(min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    country: str = Field(min_length=1, max_length=100)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------
class QuoteRequest(BaseModel):
    items: list[CartLineSchema] = Field(default_factory=list)
    coupon_code: str | None = Field(default=None, max_length=50)
    guest_email: str | None = None
    shipping_address: PartialAddressSchema | None = None

    @property
    def city(self) -> str | None:
        return self.shipping_address.city if self.shipping_address else None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "p-1", "variant_id": "v-1", "quantity": 2}],
                    "coupon_code": "SAVE10",
                    "shipping_address": {"city": "Lahore"},
                }
            ]
        }
    }


class PlaceOrderRequest(BaseModel):
    items: list[CartLineSchema] = Field(min_length=1)
    shipping_address: ShippingAddressSchema
    payment_method: Literal["cod", "manual", "online"]
    currency: str | None = Field(default=None, max_length=3)
    exchange_rate: float | None = None
    guest_email: str | None = None
    coupon_code: str | None = Field(default=None, max_length=50)

    @field_validator("currency")
    @classmethod
    def upper_case_currency(cls, value: str | None) -> str | None:
        return value.strip().upper() if value else None

    @property
    def city(self) -> str:
        return self.shipping_address.city

    def to_quote_request(self) -> QuoteRequest:
        return QuoteRequest(
            items=self.items,
            coupon_code=self.coupon_code,
            guest_email=self.guest_email,
            shipping_address=PartialAddressSchema(
                city=self.shipping_address.city,
                state=self.shipping_address.state,
                country=self.shipping_address.country,
            ),
        )


# ---------------------------------------------------------------------------
# Quote output
# ---------------------------------------------------------------------------
class DealDescriptor(BaseModel):
    id: str
    name: str
    label: str
    expires_at: datetime | None = None


class QuoteLine(BaseModel):
    product_id: str
    variant_id: str
    quantity: int
    title: str
    slug: str = ""
    image: str = ""
    unit_price: float
    original_unit_price: float | None = None
    line_total: float
    available_stock: int
    is_available: bool
    message: str | None = None
    deal: DealDescriptor | None = None


class CouponEcho(BaseModel):
    code: str
    ok: bool
    message: str | None = None


class PromotionEcho(BaseModel):
    id: str
    name: str


class DeliveryEtaSchema(BaseModel):
    min_days: int = 0
    max_days: int = 0
    text: str = ""


class Quote(BaseModel):
    lines: list[QuoteLine] = Field(default_factory=list)
    items_subtotal: float = 0.0
    discount_amount: float = 0.0
    coupon_discount_amount: float = 0.0
    promotion_discount_amount: float = 0.0
    shipping_amount: float = 0.0
    shipping_free_above_subtotal: float | None = None
    shipping_remaining_for_free: float = 0.0
    shipping_is_free: bool = False
    tax_amount: float = 0.0
    total_amount: float = 0.0
    delivery_eta: DeliveryEtaSchema = Field(default_factory=DeliveryEtaSchema)
    coupon: CouponEcho | None = None
    promotion: PromotionEcho | None = None


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc) or "request"


def parse_request(model: type[BaseModel], data) -> BaseModel:
    """Validate ``data`` (a dict or an instance) against ``model``.

    Raises:
        ValidationError: keyed by dotted field path, e.g. ``items.0.quantity``.
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()

    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        messages: dict[str, list[str]] = {}
        for error in exc.errors():
            messages.setdefault(_field_name(error["loc"]), []).append(error["msg"])
        raise ValidationError(messages) from exc
