"""
Payment DTOs (Pydantic v2) used at application boundaries.

Host-framework resources (Invoice, Payment, Customer, StoredSource) are
read-only inputs; outcomes are tagged unions discriminated by ``status``.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.codes.payment_codes import IntentStatus


METADATA_MAX_ENTRIES = 20
METADATA_MAX_KEY_LENGTH = 40
METADATA_MAX_VALUE_LENGTH = 500
STATEMENT_DESCRIPTOR_MAX_LENGTH = 22


def _upper_currency(v: str) -> str:
    u = (v or "").upper()
    if len(u) != 3 or not u.isalpha():
        raise ValueError("currency must be ISO-4217 alpha-3")
    return u


# Host framework resources ---------------------------------------------------

class Customer(BaseModel):
    id: int
    email: Optional[str] = None
    billing_email: Optional[str] = None
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Invoice(BaseModel):
    id: int
    ref: str
    customer: Optional[Customer] = None

    model_config = ConfigDict(frozen=True)


class Payment(BaseModel):
    id: int
    custom_data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class Refund(BaseModel):
    id: int

    model_config = ConfigDict(frozen=True)


class PaymentData(BaseModel):
    """Checkout form payload: a one-time token or an explicit source/customer pair."""
    token: Optional[str] = None
    source_id: Optional[str] = None
    customer_id: Optional[str] = None


class StoredSource(BaseModel):
    """A saved payment source as persisted by the host framework.

    ``data`` is opaque to the host: JSON text (or an already decoded mapping)
    carrying the Stripe ``source_id`` and ``customer_id``.
    """
    id: int
    customer_id: int
    data: Union[str, dict[str, Any], None] = None
    label: Optional[str] = None
    brand: Optional[str] = None
    last_four: Optional[str] = None
    expiry: Optional[date] = None

    def gateway_ids(self) -> tuple[Optional[str], Optional[str]]:
        data = self.data
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                data = None
        if not isinstance(data, dict):
            return None, None
        return data.get("source_id") or None, data.get("customer_id") or None


# Charge request --------------------------------------------------------------

class SavedSource(BaseModel):
    kind: Literal["saved"] = "saved"
    source_id: str
    customer_id: str


class TokenSource(BaseModel):
    kind: Literal["token"] = "token"
    token: str


class ExplicitSource(BaseModel):
    kind: Literal["explicit"] = "explicit"
    source_id: str
    customer_id: str


PaymentSource = Annotated[
    Union[SavedSource, TokenSource, ExplicitSource],
    Field(discriminator="kind"),
]


class ChargeRequest(BaseModel):
    amount: int = Field(ge=0)  # minor units
    currency: str
    description: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)
    payment_source: PaymentSource
    statement_descriptor: str = Field(default="", max_length=STATEMENT_DESCRIPTOR_MAX_LENGTH)
    receipt_email: Optional[str] = None
    customer_present: bool = True
    idempotency_key: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return _upper_currency(v)

    @field_validator("metadata")
    @classmethod
    def _validate_metadata(cls, v: dict[str, str]) -> dict[str, str]:
        if len(v) > METADATA_MAX_ENTRIES:
            raise ValueError(f"metadata allows at most {METADATA_MAX_ENTRIES} entries")
        for key, value in v.items():
            if len(key) > METADATA_MAX_KEY_LENGTH or len(value) > METADATA_MAX_VALUE_LENGTH:
                raise ValueError(f"metadata entry '{key[:METADATA_MAX_KEY_LENGTH]}' exceeds length limits")
        return v


# Normalized gateway objects -------------------------------------------------

class GatewayPaymentIntent(BaseModel):
    id: str
    status: IntentStatus
    raw_status: Optional[str] = None
    next_action_type: Optional[str] = None
    redirect_url: Optional[str] = None
    charge_id: Optional[str] = None
    balance_transaction_id: Optional[str] = None


class BalanceTransaction(BaseModel):
    id: str
    fee: int
    net: Optional[int] = None


class GatewayRefund(BaseModel):
    id: str
    status: Optional[str] = None
    fee: int = 0


class GatewayCustomer(BaseModel):
    id: str
    email: Optional[str] = None
    deleted: bool = False


class GatewayCard(BaseModel):
    id: str
    brand: Optional[str] = None
    last4: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    name: Optional[str] = None


class CardUpdate(BaseModel):
    name: Optional[str] = None
    exp_month: Optional[int] = Field(default=None, ge=1, le=12)
    exp_year: Optional[int] = None


class SourceRecord(BaseModel):
    """Fields the host framework persists for a saved source."""
    data: dict[str, str]
    label: str
    brand: Optional[str] = None
    last_four: Optional[str] = None
    expiry: Optional[date] = None
    name: Optional[str] = None


# Outcomes ---------------------------------------------------------------------

class PaymentSucceeded(BaseModel):
    status: Literal["succeeded"] = "succeeded"
    transaction_id: str
    fee: int


class AuthenticationRequired(BaseModel):
    status: Literal["requires_authentication"] = "requires_authentication"
    intent_id: str

    @property
    def sca_data(self) -> dict[str, str]:
        """Opaque data the host persists until the customer returns."""
        return {"id": self.intent_id}


class RedirectRequired(BaseModel):
    status: Literal["redirect"] = "redirect"
    url: str


class PaymentFailed(BaseModel):
    status: Literal["failed"] = "failed"
    raw_message: str
    raw_code: Optional[str] = None
    user_message: str


ChargeOutcome = Annotated[
    Union[PaymentSucceeded, AuthenticationRequired, PaymentFailed],
    Field(discriminator="status"),
]
ScaOutcome = Annotated[
    Union[PaymentSucceeded, RedirectRequired, PaymentFailed],
    Field(discriminator="status"),
]
RefundOutcome = Annotated[
    Union[PaymentSucceeded, PaymentFailed],
    Field(discriminator="status"),
]


# HTTP commands ----------------------------------------------------------------

class ChargeCommand(BaseModel):
    amount: int = Field(ge=0)
    currency: str
    description: str = ""
    invoice: Invoice
    payment: Payment
    data: dict[str, Any] = Field(default_factory=dict)
    payment_data: Optional[PaymentData] = None
    source: Optional[StoredSource] = None
    success_url: Optional[str] = None
    error_url: Optional[str] = None
    customer_present: bool = True

    @field_validator("currency")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return _upper_currency(v)


class ScaCommand(BaseModel):
    intent_id: Optional[str] = None
    success_url: Optional[str] = None


class RefundCommand(BaseModel):
    transaction_id: str
    amount: int = Field(gt=0)
    currency: str
    reason: Optional[str] = None
    invoice: Invoice
    payment: Payment
    refund: Refund
    payment_data: Optional[PaymentData] = None

    @field_validator("currency")
    @classmethod
    def _validate_currency(cls, v: str) -> str:
        return _upper_currency(v)


class CreateSourceCommand(BaseModel):
    customer: Customer
    token: str


class UpdateSourceCommand(BaseModel):
    source: StoredSource
    update: CardUpdate = Field(default_factory=CardUpdate)
