"""Guest email addresses: the payer identity for anonymous checkouts."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from checkout.domain import checkout

_FORBIDDEN = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")


@checkout.value_object
class EmailAddress:
    """A structurally valid, lower-cased email address.

    Guest orders and per-customer coupon limits are keyed on this value, so
    ``Jane@Example.com`` and ``jane@example.com`` must be the same customer.
    """

    address = String(required=True, max_length=320)

    @invariant.post
    def address_must_be_well_formed(self):
        email = self.address
        error = ValidationError({"guest_email": [f"Invalid email address: {email!r}"]})

        if any(ch.isspace() for ch in email) or email.count("@") != 1:
            raise error

        local_part, domain_part = email.split("@", 1)
        if not local_part or local_part.startswith(".") or local_part.endswith("."):
            raise error
        if not domain_part or "." not in domain_part:
            raise error
        if domain_part.startswith(".") or domain_part.endswith("."):
            raise error
        if ".." in local_part or ".." in domain_part:
            raise error
        if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
            raise error
        if any(ch in email for ch in _FORBIDDEN):
            raise error


def normalize_guest_email(raw: str | None) -> str | None:
    """Return the validated, lower-cased address, or None when nothing was given."""
    if raw is None:
        return None
    cleaned = raw.strip().lower()
    if not cleaned:
        return None
    return EmailAddress(address=cleaned).address
