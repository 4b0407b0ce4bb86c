from dataclasses import dataclass


@dataclass(frozen=True)
class Payer:
    """Who is checking out: an authenticated customer, a guest email, or nobody yet."""

    customer_id: str | None = None
    guest_email: str | None = None

    @property
    def is_identified(self) -> bool:
        return bool(self.customer_id or self.guest_email)

    def as_filter(self) -> dict:
        """Order-store filter selecting this payer's orders. Customer id wins over email."""
        if self.customer_id:
            return {"customer_id": str(self.customer_id)}
        if self.guest_email:
            return {"guest_email": self.guest_email}
        return {}
