"""Product aggregate with Variant entities: the catalogue record checkout prices from.

Stock is deliberately absent: levels live in the stock store, keyed by
(product_id, variant_id), so that reservations can be a single conditional
update at the storage layer.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, HasMany, Identifier, String, Text

from checkout.domain import checkout


def _images_json(images):
    cleaned = [url.strip() for url in (images or []) if isinstance(url, str) and url.strip()]
    return json.dumps(cleaned)


@checkout.entity(part_of="Product")
class Variant:
    """A purchasable option of a product (size/colour) with its own price."""

    sku = String(max_length=50)
    size = String(max_length=50)
    color = String(max_length=50)
    price = Float(min_value=0.0)
    images = Text()  # JSON array of image URLs

    @property
    def image_urls(self) -> list[str]:
        return json.loads(self.images) if self.images else []


@checkout.aggregate
class Product:
    title = String(required=True, max_length=255)
    slug = String(max_length=200)
    category_id = Identifier()
    base_price = Float(required=True, min_value=0.0)
    images = Text()  # JSON array of image URLs
    variants = HasMany(Variant)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, title, base_price, slug=None, category_id=None, images=None, is_active=True):
        now = datetime.now(UTC)
        return cls(
            title=title,
            slug=slug or "",
            category_id=category_id,
            base_price=base_price,
            images=_images_json(images),
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    @property
    def image_urls(self) -> list[str]:
        return json.loads(self.images) if self.images else []

    def add_variant(self, price=None, sku=None, size=None, color=None, images=None):
        """Add a variant and return it so callers can read its generated id."""
        if price is not None and price < 0:
            raise ValidationError({"price": ["Variant price cannot be negative"]})

        variant = Variant(
            sku=sku or "",
            size=size or "",
            color=color or "",
            price=price,
            images=_images_json(images),
        )
        self.add_variants(variant)
        self.updated_at = datetime.now(UTC)
        return variant

    def find_variant(self, variant_id):
        if not variant_id:
            return None
        return next((v for v in self.variants if str(v.id) == str(variant_id)), None)

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)
