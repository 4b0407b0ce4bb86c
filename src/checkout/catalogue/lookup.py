"""Catalogue lookup: resolve a requested cart line against its product record.

A matched variant is authoritative for price, stock and image; otherwise the
product-level fields apply. Missing or inactive products do not abort
anything here: the line comes back unavailable and priced at zero, and the
caller decides whether that is fatal.
"""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from checkout.catalogue.product import Product
from checkout.inventory.stock.port import StockStore

PRODUCT_NOT_FOUND = "Product not found"
INSUFFICIENT_STOCK = "Insufficient stock"


@dataclass
class CatalogLine:
    product_id: str
    variant_id: str
    quantity: int
    found: bool
    title: str = "Item"
    slug: str = ""
    image: str = ""
    category_id: str = ""
    unit_price: float = 0.0
    available_stock: int = 0
    is_variant: bool = False
    variant_sku: str = ""
    variant_size: str = ""
    variant_color: str = ""

    @property
    def stock_variant_id(self) -> str | None:
        """The stock key's variant part: None when the product itself holds the stock."""
        return self.variant_id if self.is_variant else None

    @property
    def is_available(self) -> bool:
        return self.found and self.available_stock >= self.quantity

    @property
    def message(self) -> str | None:
        if not self.found:
            return PRODUCT_NOT_FOUND
        if not self.is_available:
            return INSUFFICIENT_STOCK
        return None


def load_products(product_ids) -> dict[str, Product | None]:
    """Point-lookup each distinct product id once for this request."""
    repo = current_domain.repository_for(Product)
    products: dict[str, Product | None] = {}
    for product_id in dict.fromkeys(str(pid) for pid in product_ids):
        try:
            products[product_id] = repo.get(product_id)
        except ObjectNotFoundError:
            products[product_id] = None
    return products


def resolve_line(product_id, variant_id, quantity, product: Product | None, stock_store: StockStore) -> CatalogLine:
    if product is None or not product.is_active:
        return CatalogLine(
            product_id=str(product_id),
            variant_id=str(variant_id),
            quantity=quantity,
            found=False,
        )

    images = product.image_urls
    line = CatalogLine(
        product_id=str(product.id),
        variant_id=str(variant_id),
        quantity=quantity,
        found=True,
        title=product.title or "Item",
        slug=product.slug or "",
        image=images[0] if images else "",
        category_id=str(product.category_id) if product.category_id else "",
        unit_price=float(product.base_price or 0.0),
    )

    variant = product.find_variant(variant_id)
    if variant is not None:
        line.is_variant = True
        if variant.price is not None:
            line.unit_price = float(variant.price)
        variant_images = variant.image_urls
        if variant_images:
            line.image = variant_images[0]
        line.variant_sku = variant.sku or ""
        line.variant_size = variant.size or ""
        line.variant_color = variant.color or ""

    line.available_stock = stock_store.level(line.product_id, line.stock_variant_id)
    return line
