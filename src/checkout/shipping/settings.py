"""Shipping settings: the store-wide default fee and ETA plus per-city overrides."""

from protean.fields import Float, HasMany, Integer, String

from checkout.domain import checkout

GLOBAL_KEY = "global"
MAX_ETA_DAYS = 60


@checkout.entity(part_of="ShippingSettings")
class CityRule:
    """Overrides for one destination city.

    ``free_above_subtotal`` and the ETA bounds are optional; when unset the
    store-wide value applies. The fee always applies when the city matches.
    """

    city = String(required=True, max_length=80)
    fee = Float(default=0.0, min_value=0.0)
    free_above_subtotal = Float(min_value=0.0)
    eta_min_days = Integer(min_value=0)
    eta_max_days = Integer(min_value=0)
    position = Integer(default=0)


@checkout.aggregate
class ShippingSettings:
    key = String(default=GLOBAL_KEY, max_length=20)
    default_fee = Float(default=0.0, min_value=0.0)
    free_above_subtotal = Float(min_value=0.0)  # None: shipping is never free
    eta_min_days = Integer(default=3, min_value=0)
    eta_max_days = Integer(default=5, min_value=0)
    city_rules = HasMany(CityRule)

    def add_city_rule(self, city, fee, free_above_subtotal=None, eta_min_days=None, eta_max_days=None):
        city = (city or "").strip()
        if not city:
            return None
        rule = CityRule(
            city=city,
            fee=fee,
            free_above_subtotal=free_above_subtotal,
            eta_min_days=eta_min_days,
            eta_max_days=eta_max_days,
            position=len(self.city_rules),
        )
        self.add_city_rules(rule)
        return rule

    def ordered_city_rules(self) -> list[CityRule]:
        return sorted(self.city_rules, key=lambda rule: rule.position or 0)


@checkout.repository(part_of=ShippingSettings)
class ShippingSettingsRepository:
    def current(self) -> ShippingSettings:
        """The stored global settings, or defaults when none were saved."""
        stored = self._dao.query.filter(key=GLOBAL_KEY).all().items
        return stored[0] if stored else ShippingSettings(key=GLOBAL_KEY)
