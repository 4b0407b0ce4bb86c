"""Checkout failures.

Structural problems with a request are reported with Protean's
``ValidationError``. Everything that goes wrong while pricing or placing an
order is a ``CheckoutError`` carrying a stable ``code`` and a customer-facing
``message``.
"""


class CheckoutError(Exception):
    code = "checkout_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class UnavailableLine(CheckoutError):
    """A product is missing, inactive, or short of stock."""

    code = "unavailable_line"

    def __init__(self, message: str, product_id: str | None = None, variant_id: str | None = None) -> None:
        super().__init__(message)
        self.product_id = product_id
        self.variant_id = variant_id


class DiscountRejected(CheckoutError):
    """A coupon or promotion does not apply. Downgraded to a zero discount."""

    code = "discount_rejected"


class PaymentConfigurationError(CheckoutError):
    code = "payment_configuration"


class ReservationConflict(CheckoutError):
    """Stock ran out between pricing and reservation."""

    code = "reservation_conflict"

    def __init__(self, message: str = "Insufficient stock", failed_line=None) -> None:
        super().__init__(message)
        self.failed_line = failed_line


class PersistenceFailure(CheckoutError):
    code = "persistence_failure"

    def __init__(self, message: str = "Could not create order") -> None:
        super().__init__(message)
