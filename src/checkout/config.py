"""Engine settings read from the environment.

Protean's own configuration (providers, processing mode) lives in
``domain.toml``; these are the checkout-specific knobs.
"""

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class Settings:
    base_currency: str = "PKR"
    secondary_currency: str = "USD"
    max_line_quantity: int = 99
    deal_scan_limit: int = 500
    promotion_scan_limit: int = 50
    stock_database_uri: str | None = None

    @property
    def supported_currencies(self) -> tuple[str, str]:
        return (self.base_currency, self.secondary_currency)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        base_currency=os.getenv("CHECKOUT_BASE_CURRENCY", "PKR").upper(),
        secondary_currency=os.getenv("CHECKOUT_SECONDARY_CURRENCY", "USD").upper(),
        max_line_quantity=_int_env("CHECKOUT_MAX_LINE_QUANTITY", 99),
        deal_scan_limit=_int_env("CHECKOUT_DEAL_SCAN_LIMIT", 500),
        promotion_scan_limit=_int_env("CHECKOUT_PROMOTION_SCAN_LIMIT", 50),
        stock_database_uri=os.getenv("CHECKOUT_STOCK_DATABASE_URI") or None,
    )
