"""Acquiring bank wire shapes."""

from pydantic import BaseModel


class BankPaymentRequest(BaseModel):
    """Body of `POST <bank>/payments`."""

    card_number: str
    expiry_date: str
    currency: str
    amount: int
    cvv: str


class BankResponse(BaseModel):
    """Bank decision for one payment. Never persisted."""

    authorized: bool
    authorization_code: str | None = None
