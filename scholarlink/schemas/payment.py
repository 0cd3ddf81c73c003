"""On-device payment profile schema"""
from pydantic import BaseModel, Field


def digits_only(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def group_digits(value: str, size: int = 4, separator: str = " ") -> str:
    digits = digits_only(value)
    return separator.join(digits[i:i + size] for i in range(0, len(digits), size))


class BillingAddress(BaseModel):
    street: str = ""
    city: str = ""
    province: str = ""
    postal_code: str = ""
    country: str = "Philippines"

    @property
    def is_complete(self) -> bool:
        return all([self.street, self.city, self.province, self.postal_code])


class PaymentDetails(BaseModel):
    """
    Card-like payment profile kept on the device to gate booking.

    Never sent to a payment processor or any remote endpoint.
    """

    cardholder_name: str = ""
    card_number: str = ""
    expiry_month: str = ""
    expiry_year: str = ""
    cvv: str = ""
    phone_number: str = ""
    email: str = ""
    billing_address: BillingAddress = Field(default_factory=BillingAddress)
    save_for_future_sessions: bool = True
    enable_auto_approval: bool = False

    @property
    def masked_card_number(self) -> str:
        return f"•••• •••• •••• {digits_only(self.card_number)[-4:]}"

    @property
    def formatted_card_number(self) -> str:
        return group_digits(self.card_number)

    @property
    def expiration_display(self) -> str:
        if not self.expiry_month or not self.expiry_year:
            return ""
        return f"{self.expiry_month}/{self.expiry_year[-2:]}"
