"""Payment settings: which payment methods the store currently accepts."""

from enum import Enum

from protean.fields import Boolean, String

from checkout.domain import checkout

GLOBAL_KEY = "global"


class PaymentMethod(Enum):
    COD = "cod"
    MANUAL = "manual"
    ONLINE = "online"


@checkout.aggregate
class PaymentSettings:
    key = String(default=GLOBAL_KEY, max_length=20)
    cod_enabled = Boolean(default=True)
    manual_enabled = Boolean(default=True)
    online_enabled = Boolean(default=False)

    def accepts(self, method: str) -> bool:
        return {
            PaymentMethod.COD.value: bool(self.cod_enabled),
            PaymentMethod.MANUAL.value: bool(self.manual_enabled),
            PaymentMethod.ONLINE.value: bool(self.online_enabled),
        }.get(method, False)


@checkout.repository(part_of=PaymentSettings)
class PaymentSettingsRepository:
    def current(self) -> PaymentSettings:
        stored = self._dao.query.filter(key=GLOBAL_KEY).all().items
        return stored[0] if stored else PaymentSettings(key=GLOBAL_KEY)
