from datetime import timedelta

import pytest
from checkout.pricing.deal import Deal
from checkout.pricing.deals import best_deals_by_product, deal_label, deal_price, load_best_deals
from protean.exceptions import ValidationError


def _deal(now, product_ids, **kwargs):
    kwargs.setdefault("name", "Deal")
    kwargs.setdefault("discount_type", "percent")
    kwargs.setdefault("value", 10.0)
    return Deal.create(
        product_ids=product_ids,
        starts_at=now - timedelta(hours=1),
        expires_at=now + timedelta(hours=1),
        **kwargs,
    )


class TestDealPrice:
    def test_percent(self):
        assert deal_price(1000.0, "percent", 10) == 900.0
        assert deal_price(99.99, "percent", 15) == 84.99

    def test_percent_is_capped_at_100(self):
        assert deal_price(500.0, "percent", 150) == 0.0

    def test_fixed(self):
        assert deal_price(1000.0, "fixed", 250) == 750.0

    def test_fixed_never_goes_below_zero(self):
        assert deal_price(100.0, "fixed", 250) == 0.0

    def test_negative_inputs_are_clamped(self):
        assert deal_price(-10.0, "fixed", 5) == 0.0
        assert deal_price(100.0, "percent", -20) == 100.0


class TestDealLabel:
    def test_percent_label(self):
        assert deal_label("percent", 10.0) == "-10%"
        assert deal_label("percent", 12.5) == "-12.5%"

    def test_fixed_label(self):
        assert deal_label("fixed", 50) == "-50.00 off"


class TestDealWindow:
    def test_expiry_must_follow_start(self, now):
        with pytest.raises(ValidationError) as exc:
            Deal.create(
                name="Broken",
                product_ids=["p1"],
                discount_type="percent",
                value=10,
                starts_at=now,
                expires_at=now,
            )
        assert "expires_at" in exc.value.messages

    def test_window_is_half_open(self, now):
        deal = _deal(now, ["p1"])
        assert deal.is_running(deal.starts_at)
        assert not deal.is_running(deal.expires_at)

    def test_inactive_deal_is_not_running(self, now):
        assert not _deal(now, ["p1"], is_active=False).is_running(now)


class TestBestDealsByProduct:
    def test_first_seen_wins(self, now):
        best = _deal(now, ["p1", "p2"], name="Best")
        other = _deal(now, ["p2", "p3"], name="Other")

        result = best_deals_by_product([best, other])

        assert result["p1"].name == "Best"
        assert result["p2"].name == "Best"
        assert result["p3"].name == "Other"

    def test_carries_label_and_expiry(self, now):
        deal = _deal(now, ["p1"], discount_type="fixed", value=50)

        applied = best_deals_by_product([deal])["p1"]

        assert applied.label == "-50.00 off"
        assert applied.expires_at == deal.expires_at


class TestLoadBestDeals:
    def test_higher_priority_wins(self, now, make_deal):
        make_deal(["p1"], name="Low", priority=1, value=5)
        make_deal(["p1"], name="High", priority=5, value=20)

        assert load_best_deals(["p1"], now)["p1"].name == "High"

    def test_newest_wins_on_equal_priority(self, now, make_deal):
        make_deal(["p1"], name="Older", created_at=now - timedelta(days=2))
        make_deal(["p1"], name="Newer", created_at=now - timedelta(days=1))

        assert load_best_deals(["p1"], now)["p1"].name == "Newer"

    def test_ignores_deals_outside_window(self, now, make_deal):
        make_deal(["p1"], starts_at=now + timedelta(hours=1), expires_at=now + timedelta(days=1))
        make_deal(["p1"], starts_at=now - timedelta(days=2), expires_at=now)

        assert load_best_deals(["p1"], now) == {}

    def test_only_requested_products(self, now, make_deal):
        make_deal(["p9"])

        assert load_best_deals(["p1"], now) == {}
