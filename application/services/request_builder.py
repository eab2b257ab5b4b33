"""
Builds gateway charge requests from host-framework objects.
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

from application.dtos.payments import (
    ChargeRequest,
    ExplicitSource,
    Invoice,
    METADATA_MAX_ENTRIES,
    METADATA_MAX_KEY_LENGTH,
    METADATA_MAX_VALUE_LENGTH,
    Payment,
    PaymentData,
    SavedSource,
    STATEMENT_DESCRIPTOR_MAX_LENGTH,
    StoredSource,
    TokenSource,
)
from core.settings import INVOICE_REF_PLACEHOLDER, StripeSettings
from domain.payment.exceptions import DriverConfigurationError


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, default=str)


def build_metadata(invoice: Invoice, extra: Optional[Mapping[str, Any]] = None) -> dict[str, str]:
    """Merge invoice identifiers with caller metadata within gateway limits.

    Keys are cut to 40 and values to 500 characters; when cut keys collide the
    first one wins. The first 20 distinct keys (in merge order) survive.
    """
    merged: dict[str, Any] = {"invoiceId": invoice.id, "invoiceRef": invoice.ref}
    merged.update(extra or {})
    metadata: dict[str, str] = {}
    for key, value in merged.items():
        if len(metadata) >= METADATA_MAX_ENTRIES:
            break
        key = str(key)[:METADATA_MAX_KEY_LENGTH]
        if key in metadata:
            continue
        metadata[key] = _stringify(value)[:METADATA_MAX_VALUE_LENGTH]
    return metadata


def render_statement_descriptor(template: str, invoice_ref: str) -> str:
    return template.replace(INVOICE_REF_PLACEHOLDER, invoice_ref)[:STATEMENT_DESCRIPTOR_MAX_LENGTH]


def idempotency_key(*parts: Any) -> str:
    # Stable, reproducible key derived from business identifiers (no timestamp)
    base = "|".join(str(p) for p in parts)
    return hashlib.sha256(base.encode("utf-8")).hexdigest()


def source_identity(source: SavedSource | TokenSource | ExplicitSource) -> tuple[str, ...]:
    # A retry with a different card must not replay the previous attempt
    if isinstance(source, TokenSource):
        return (source.kind, source.token)
    return (source.kind, source.source_id, source.customer_id)


class RequestBuilder:
    def __init__(self, stripe_settings: StripeSettings) -> None:
        self.settings = stripe_settings

    def build(
        self,
        *,
        amount: int,
        currency: str,
        description: str,
        invoice: Invoice,
        payment: Payment,
        data: Optional[Mapping[str, Any]] = None,
        payment_data: Optional[PaymentData] = None,
        customer_present: bool = True,
        source: Optional[StoredSource] = None,
    ) -> ChargeRequest:
        payment_source = self.resolve_source(source, payment_data)
        return ChargeRequest(
            amount=amount,
            currency=currency,
            description=description,
            metadata=build_metadata(invoice, {**payment.custom_data, **(data or {})}),
            payment_source=payment_source,
            statement_descriptor=render_statement_descriptor(self.settings.statement_descriptor, invoice.ref),
            receipt_email=self.receipt_email(invoice),
            customer_present=customer_present,
            idempotency_key=idempotency_key(
                "charge", invoice.id, payment.id, amount, currency.upper(), *source_identity(payment_source)
            ),
        )

    @staticmethod
    def resolve_source(
        source: Optional[StoredSource],
        payment_data: Optional[PaymentData],
    ) -> SavedSource | TokenSource | ExplicitSource:
        """Pick the payment source; saved source, then token, then explicit pair."""
        if source is not None:
            source_id, customer_id = source.gateway_ids()
            if not source_id or not customer_id:
                raise DriverConfigurationError(
                    "Could not ascertain the source/customer id",
                    details={"source_id": source.id},
                )
            return SavedSource(source_id=source_id, customer_id=customer_id)

        payment_data = payment_data or PaymentData()
        if payment_data.token:
            return TokenSource(token=payment_data.token)
        if payment_data.source_id and payment_data.customer_id:
            return ExplicitSource(source_id=payment_data.source_id, customer_id=payment_data.customer_id)

        raise DriverConfigurationError("Must provide a payment source")

    def receipt_email(self, invoice: Invoice) -> Optional[str]:
        if not self.settings.enable_receipt_email or invoice.customer is None:
            return None
        return invoice.customer.billing_email or invoice.customer.email or None
