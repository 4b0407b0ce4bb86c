from datetime import UTC, datetime, timedelta

import pytest
from protean.integrations.pytest import DomainFixture

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture(scope="session")
def checkout_bed():
    from checkout.domain import checkout

    bed = DomainFixture(checkout)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(checkout_bed):
    with checkout_bed.domain_context():
        yield

        from protean import current_domain

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def stock():
    """A fresh recording stock store installed as the active one."""
    from checkout.inventory.stock import reset_stock_store, set_stock_store
    from checkout.inventory.stock.fake_adapter import RecordingStockStore

    store = RecordingStockStore()
    set_stock_store(store)
    yield store
    reset_stock_store()


@pytest.fixture
def make_product(stock):
    """Persist a product and seed its stock.

    ``variants`` is a list of dicts (price, sku, size, color, images, stock);
    their generated ids are available on ``product.variants``.
    """
    from protean import current_domain

    from checkout.catalogue.product import Product

    def _make(title="Linen Shirt", price=100.0, stock_level=10, category_id=None, variants=None, **kwargs):
        product = Product.create(title=title, base_price=price, category_id=category_id, **kwargs)
        levels = []
        for spec in variants or []:
            spec = dict(spec)
            level = spec.pop("stock", 10)
            levels.append((product.add_variant(**spec), level))
        current_domain.repository_for(Product).add(product)

        stock.set_level(str(product.id), None, stock_level)
        for variant, level in levels:
            stock.set_level(str(product.id), str(variant.id), level)
        return product

    return _make


@pytest.fixture
def make_coupon():
    from protean import current_domain

    from checkout.pricing.coupon import Coupon

    def _make(code="SAVE10", discount_type="percent", value=10.0, **kwargs):
        coupon = Coupon.create(code=code, discount_type=discount_type, value=value, **kwargs)
        current_domain.repository_for(Coupon).add(coupon)
        return coupon

    return _make


@pytest.fixture
def make_promotion():
    from protean import current_domain

    from checkout.pricing.promotion import Promotion

    def _make(name="Spring Sale", discount_type="percent", value=5.0, **kwargs):
        promotion = Promotion.create(name=name, discount_type=discount_type, value=value, **kwargs)
        current_domain.repository_for(Promotion).add(promotion)
        return promotion

    return _make


@pytest.fixture
def make_deal():
    from protean import current_domain

    from checkout.pricing.deal import Deal

    def _make(product_ids, name="Flash Deal", discount_type="percent", value=10.0, **kwargs):
        kwargs.setdefault("starts_at", NOW - timedelta(days=1))
        kwargs.setdefault("expires_at", NOW + timedelta(days=1))
        deal = Deal.create(name=name, product_ids=product_ids, discount_type=discount_type, value=value, **kwargs)
        current_domain.repository_for(Deal).add(deal)
        return deal

    return _make


@pytest.fixture
def shipping_settings():
    """Persist global shipping settings: fee 150, free from 1000, 3–5 days."""
    from protean import current_domain

    from checkout.shipping.settings import ShippingSettings

    def _make(default_fee=150.0, free_above_subtotal=1000.0, eta_min_days=3, eta_max_days=5, city_rules=None):
        settings = ShippingSettings(
            default_fee=default_fee,
            free_above_subtotal=free_above_subtotal,
            eta_min_days=eta_min_days,
            eta_max_days=eta_max_days,
        )
        for rule in city_rules or []:
            settings.add_city_rule(**rule)
        current_domain.repository_for(ShippingSettings).add(settings)
        return settings

    return _make


@pytest.fixture
def payment_settings():
    from protean import current_domain

    from checkout.payments.settings import PaymentSettings

    def _make(**flags):
        settings = PaymentSettings(**flags)
        current_domain.repository_for(PaymentSettings).add(settings)
        return settings

    return _make


@pytest.fixture
def address():
    return {
        "full_name": "Ayesha Khan",
        "phone": "+92 300 1234567",
        "address_line1": "12 Canal View",
        "city": "Lahore",
        "state": "Punjab",
        "postal_code": "54000",
        "country": "Pakistan",
    }
