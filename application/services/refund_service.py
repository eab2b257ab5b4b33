"""
Refund orchestration against a previously settled charge.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import (
    Invoice,
    Payment,
    PaymentData,
    PaymentSucceeded,
    Refund,
    RefundOutcome,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.failures import failure_from_exception
from application.services.request_builder import build_metadata, idempotency_key
from core.logging_config import get_logger


logger = get_logger(__name__)


class RefundService:
    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway

    async def refund(
        self,
        transaction_id: str,
        amount: int,
        currency: str,
        payment_data: Optional[PaymentData],
        reason: Optional[str],
        payment: Payment,
        refund: Refund,
        invoice: Invoice,
    ) -> RefundOutcome:
        """Issue a refund; the reported fee is the negative of the gateway fee."""
        metadata = build_metadata(
            invoice,
            {"paymentId": payment.id, "refundId": refund.id, "reason": reason or ""},
        )
        logger.info(
            "refund_request",
            invoice_id=invoice.id,
            payment_id=payment.id,
            refund_id=refund.id,
            transaction_id=transaction_id,
            amount=amount,
            currency=currency,
        )
        try:
            result = await self.gateway.create_refund(
                transaction_id,
                amount,
                metadata,
                idempotency_key=idempotency_key("refund", refund.id, transaction_id, amount, currency.upper()),
            )
        except Exception as exc:
            return failure_from_exception(exc, operation="refund")

        logger.info("refund_response", refund_id=refund.id, gateway_refund_id=result.id, status=result.status)
        return PaymentSucceeded(transaction_id=result.id, fee=-result.fee)
