"""
Payment Details Store

One payment profile per device, kept in the local key-value store and
overwritten on every save. It only gates booking: nothing here talks to a
payment processor or sends the profile anywhere.

The profile holds card data, so it is Fernet-encrypted before it is written.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError as SchemaValidationError

from scholarlink.config import PAYMENT_ENCRYPTION_KEY
from scholarlink.errors import ValidationError
from scholarlink.schemas.payment import PaymentDetails, digits_only
from scholarlink.stores.kv_store import KeyValueStore
from scholarlink.utils import remote_operation, utc_now

logger = logging.getLogger(__name__)

PAYMENT_DETAILS_KEY = "scholarlink.payment.details"
PAYMENT_UPDATED_AT_KEY = "scholarlink.payment.details.updated_at"


def get_fernet(key: str = PAYMENT_ENCRYPTION_KEY) -> Fernet:
    """Fernet cipher for the payment profile, keyed by PAYMENT_ENCRYPTION_KEY."""
    if not key:
        raise RuntimeError("Missing required environment variable: PAYMENT_ENCRYPTION_KEY")
    return Fernet(key)


def validate_payment_details(details: PaymentDetails) -> PaymentDetails:
    """
    Check the payment form and return a normalized copy.

    Raises:
        ValidationError: On the first missing or malformed field
    """
    card_number = digits_only(details.card_number)
    cvv = digits_only(details.cvv)
    month = digits_only(details.expiry_month)
    year = digits_only(details.expiry_year)
    address = details.billing_address

    if len(details.cardholder_name.strip()) < 3:
        raise ValidationError("Enter the name on the card", field="cardholder_name")
    if not 12 <= len(card_number) <= 19:
        raise ValidationError("Enter a valid card number", field="card_number")
    if not month or not 1 <= int(month) <= 12:
        raise ValidationError("Enter a valid expiry month", field="expiry_month")
    if len(year) not in (2, 4):
        raise ValidationError("Enter a valid expiry year", field="expiry_year")
    if not 3 <= len(cvv) <= 4:
        raise ValidationError("Enter the 3 or 4 digit CVV", field="cvv")
    if not details.email.strip():
        raise ValidationError("Enter an email for receipts", field="email")
    if not address.is_complete:
        raise ValidationError("Complete your billing address", field="billing_address")

    return details.model_copy(
        update={
            "card_number": card_number,
            "cvv": cvv,
            "expiry_month": month.zfill(2),
            "expiry_year": year,
            "phone_number": digits_only(details.phone_number),
            "email": details.email.strip(),
            "cardholder_name": details.cardholder_name.strip(),
        }
    )


class PaymentDetailsStore:
    def __init__(self, kv: KeyValueStore, fernet: Fernet, clock: Callable[[], datetime] = utc_now):
        self._kv = kv
        self._fernet = fernet
        self._clock = clock
        self.saved_details: Optional[PaymentDetails] = None
        self.last_updated: Optional[datetime] = None

    async def load(self) -> Optional[PaymentDetails]:
        """Read the stored profile; unreadable data counts as no profile."""
        with remote_operation(logger, "load payment details", "Failed to load payment details. Please try again."):
            token = await self._kv.get(PAYMENT_DETAILS_KEY)
            updated_at = await self._kv.get(PAYMENT_UPDATED_AT_KEY)

        details = None
        if token is not None:
            try:
                details = PaymentDetails.model_validate_json(self._fernet.decrypt(token.encode("utf-8")))
            except (InvalidToken, SchemaValidationError) as e:
                logger.warning(f"Stored payment details could not be read: {type(e).__name__}")

        self.saved_details = details
        self.last_updated = datetime.fromisoformat(updated_at) if details and updated_at else None
        return details

    async def save(self, details: PaymentDetails) -> PaymentDetails:
        normalized = validate_payment_details(details)
        now = self._clock()
        token = self._fernet.encrypt(normalized.model_dump_json().encode("utf-8")).decode("utf-8")

        with remote_operation(logger, "save payment details", "Failed to save payment details. Please try again."):
            await self._kv.set(PAYMENT_DETAILS_KEY, token)
            await self._kv.set(PAYMENT_UPDATED_AT_KEY, now.isoformat())

        self.saved_details = normalized
        self.last_updated = now
        logger.info(f"Payment details saved for card ending {normalized.card_number[-4:]}")
        return normalized

    async def clear(self) -> None:
        with remote_operation(logger, "clear payment details", "Failed to remove payment details. Please try again."):
            await self._kv.delete(PAYMENT_DETAILS_KEY, PAYMENT_UPDATED_AT_KEY)
        self.saved_details = None
        self.last_updated = None

    async def has_stored_details(self) -> bool:
        return await self.load() is not None
