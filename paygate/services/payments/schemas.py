"""Payment domain values and public API request/response schemas."""

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from paygate.common.state_machine import PaymentStatus
from paygate.services.payments.validation import extract_last_four


class PaymentCommand(BaseModel):
    """Already-validated payment attempt handed to the orchestrator.

    Card number and CVV are kept out of `repr` so they never reach logs.
    """

    model_config = ConfigDict(frozen=True)

    card_number: str = Field(repr=False)
    expiry_month: int
    expiry_year: int
    currency: str
    amount: int
    cvv: str = Field(repr=False)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def expiry_date(self) -> str:
        """Expiry in the bank's `MM/YYYY` format."""

        return f"{self.expiry_month:02d}/{self.expiry_year:04d}"


class PaymentRecord(BaseModel):
    """Durable ledger entry for one payment attempt.

    Only `status` ever changes, and only through the ledger.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    status: PaymentStatus
    card_last_four: str = Field(pattern=r"^[0-9]{4}$")
    expiry_month: int = Field(ge=1, le=12)
    expiry_year: int
    currency: str = Field(min_length=3, max_length=3)
    amount: int = Field(gt=0)

    @classmethod
    def pending_from(cls, command: PaymentCommand) -> "PaymentRecord":
        """Build the provisional record written before the bank is called."""

        return cls(
            id=str(uuid4()),
            status=PaymentStatus.PENDING,
            card_last_four=extract_last_four(command.card_number),
            expiry_month=command.expiry_month,
            expiry_year=command.expiry_year,
            currency=command.currency,
            amount=command.amount,
        )

    def with_status(self, status: PaymentStatus) -> "PaymentRecord":
        return self.model_copy(update={"status": status})


class PostPaymentRequest(BaseModel):
    """Payload accepted by `POST /api/v1/payments`.

    Only shapes are checked here; field rules live in `validation`.
    """

    card_number: str
    expiry_month: int
    expiry_year: int
    currency: str
    amount: int
    cvv: str

    def to_command(self) -> PaymentCommand:
        return PaymentCommand(
            card_number=self.card_number,
            expiry_month=self.expiry_month,
            expiry_year=self.expiry_year,
            currency=self.currency,
            amount=self.amount,
            cvv=self.cvv,
        )


class PaymentResponse(BaseModel):
    """Payment view returned by both POST and GET endpoints."""

    id: str
    status: PaymentStatus
    card_number_last_four: str
    expiry_month: int
    expiry_year: int
    currency: str
    amount: int

    @classmethod
    def from_record(cls, record: PaymentRecord) -> "PaymentResponse":
        return cls(
            id=record.id,
            status=record.status,
            card_number_last_four=record.card_last_four,
            expiry_month=record.expiry_month,
            expiry_year=record.expiry_year,
            currency=record.currency,
            amount=record.amount,
        )
