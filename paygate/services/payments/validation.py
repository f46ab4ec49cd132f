"""Field validation for inbound payment requests.

Runs before a `PaymentCommand` is built; the orchestrator itself never
validates fields. Returns messages instead of raising so the API can report
every problem at once.
"""

import re
from collections.abc import Iterable
from datetime import date, datetime, timezone

DIGITS_ONLY = re.compile(r"^[0-9]+$")
CVV_DIGITS = re.compile(r"^[0-9]{3,4}$")

CARD_NUMBER_MIN_LENGTH = 14
CARD_NUMBER_MAX_LENGTH = 19


def extract_last_four(card_number: str) -> str:
    """Return the last four digits of a card number.

    Fewer than four digits means validation was skipped upstream, so this
    raises instead of guessing.
    """

    if not card_number or not card_number.strip():
        raise ValueError("Card number required.")
    digits = "".join(ch for ch in card_number if ch in "0123456789")
    if len(digits) < 4:
        raise ValueError("Card number has fewer than 4 digits.")
    return digits[-4:]


def validate_card_number(card_number: str | None) -> str | None:
    if not card_number or not card_number.strip():
        return "Card number is required."
    if len(card_number) < CARD_NUMBER_MIN_LENGTH:
        return f"Card number must be at least {CARD_NUMBER_MIN_LENGTH} digits."
    if len(card_number) > CARD_NUMBER_MAX_LENGTH:
        return f"Card number must be at most {CARD_NUMBER_MAX_LENGTH} digits."
    if not DIGITS_ONLY.match(card_number):
        return "Card number must contain digits only."
    return None


def validate_expiry_month(month: int | None) -> str | None:
    if not month:
        return "Expiry month is required."
    if month < 1 or month > 12:
        return "Expiry month must be between 1 and 12."
    return None


def validate_expiry_year(year: int | None) -> str | None:
    if not year:
        return "Expiry year is required."
    if year < 1 or year > 9999:
        return "Expiry year is invalid."
    return None


def validate_currency(currency: str | None, supported_currencies: Iterable[str]) -> str | None:
    if not currency or not currency.strip():
        return "Currency code is required."
    if len(currency) != 3:
        return "Currency code must be 3 characters long."
    if currency.upper() not in supported_currencies:
        return "Invalid currency code."
    return None


def validate_amount(amount: int | None) -> str | None:
    if amount is None or amount == 0:
        return "Payment amount is required."
    if amount < 1:
        return "The amount must be a positive number (at least 1 minor unit)."
    return None


def validate_cvv(cvv: str | None) -> str | None:
    if not cvv or not cvv.strip():
        return "Cvv is required."
    if len(cvv) < 3 or len(cvv) > 4:
        return "CVV must be 3 or 4 digits."
    if not CVV_DIGITS.match(cvv):
        return "CVV must only contain numeric characters."
    return None


def validate_expiry_in_future(month: int, year: int, today: date | None = None) -> str | None:
    """A card stays valid through the last day of its expiry month."""

    # Only meaningful once month and year are individually valid.
    if validate_expiry_month(month) is not None or validate_expiry_year(year) is not None:
        return None
    today = today or datetime.now(timezone.utc).date()
    if (today.year, today.month) > (year, month):
        return "The expiry date must be in the future."
    return None


def validate_payment_request(
    request,
    supported_currencies: Iterable[str],
    today: date | None = None,
) -> list[str]:
    """Collect every validation message for one payment request."""

    checks = [
        validate_card_number(request.card_number),
        validate_expiry_month(request.expiry_month),
        validate_expiry_year(request.expiry_year),
        validate_currency(request.currency, supported_currencies),
        validate_amount(request.amount),
        validate_cvv(request.cvv),
        validate_expiry_in_future(request.expiry_month, request.expiry_year, today),
    ]
    return [message for message in checks if message is not None]
