"""Payment method / currency checks that must pass before stock is touched."""

from checkout.config import Settings
from checkout.errors import PaymentConfigurationError
from checkout.payments.settings import PaymentMethod, PaymentSettings

_UNAVAILABLE = {
    PaymentMethod.COD.value: "Cash on delivery is not available",
    PaymentMethod.MANUAL.value: "Manual payment is not available",
    PaymentMethod.ONLINE.value: "Online payment is not available",
}


def check_currency(method: str, currency: str, exchange_rate: float | None, settings: Settings) -> float | None:
    """Validate the currency choice and return the exchange-rate snapshot to store.

    Orders in the base currency carry no rate. Orders in the secondary
    currency need a positive rate and cannot be paid cash on delivery.
    """
    if currency not in settings.supported_currencies:
        raise PaymentConfigurationError(f"Unsupported currency {currency}")

    if currency == settings.base_currency:
        return None

    if exchange_rate is None or exchange_rate <= 0:
        raise PaymentConfigurationError("Exchange rate is required")

    if method == PaymentMethod.COD.value:
        raise PaymentConfigurationError(f"Cash on delivery is not available for {currency} orders")

    return float(exchange_rate)


def check_method_enabled(method: str, payment_settings: PaymentSettings) -> None:
    if not payment_settings.accepts(method):
        raise PaymentConfigurationError(_UNAVAILABLE.get(method, "Payment method is not available"))


def payment_status_for(method: str) -> str:
    """Manual transfers await a receipt; everything else starts unpaid."""
    return "Pending" if method == PaymentMethod.MANUAL.value else "Unpaid"
