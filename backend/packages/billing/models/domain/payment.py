"""
Domain models for payment transactions and gateway callbacks.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.billing.models.domain.enums import PaymentProvider, PaymentStatus

CENT = Decimal("0.01")


def quantize_amount(value) -> Decimal:
    """Normalise a money amount to two decimal places."""
    try:
        return Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


class PaymentTransaction(BaseModel):
    """
    Payment transaction domain model.

    Created Pending when an intent is requested, flipped exactly once to
    Paid or Failed. The invoice_id is the idempotency key for callbacks.
    """

    id: int
    user_id: int
    plan_id: int
    subscription_id: Optional[int] = None

    amount: Decimal
    currency: str
    status: PaymentStatus
    invoice_id: str
    provider: PaymentProvider = PaymentProvider.ROBOKASSA

    paid_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        return quantize_amount(v)

    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID


class PaymentTransactionCreateModel(BaseModel):
    """Model for creating a pending payment transaction."""

    user_id: int
    plan_id: int
    amount: Decimal
    currency: str
    invoice_id: str
    status: str = PaymentStatus.PENDING.value
    provider: str = PaymentProvider.ROBOKASSA.value

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v):
        return quantize_amount(v)


class PaymentIntent(BaseModel):
    """Payment intent returned to the client before redirecting to the gateway."""

    payment_id: int
    invoice_id: str
    amount: Decimal
    currency: str
    status: PaymentStatus
    payment_url: str
    expires_at: datetime


class GatewayCallback(BaseModel):
    """
    Gateway result callback.

    Accepts the gateway's native field names (OutSum, InvId, SignatureValue)
    as well as snake_case names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_id: str = Field(..., alias="InvId", min_length=1)
    amount: str = Field(..., alias="OutSum", min_length=1)
    signature: str = Field("", alias="SignatureValue")

    @field_validator("invoice_id", "amount", mode="before")
    @classmethod
    def validate_str(cls, v):
        return str(v) if v is not None else v

    def amount_decimal(self) -> Decimal:
        return quantize_amount(self.amount)


class CallbackResult(BaseModel):
    """Outcome of a reconciled payment callback."""

    invoice_id: str
    payment_id: int
    status: PaymentStatus
    subscription_id: Optional[int] = None
    replayed: bool = False
