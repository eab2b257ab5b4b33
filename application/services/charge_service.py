"""
Charge orchestration: create a confirmed PaymentIntent and classify the result.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from application.dtos.payments import (
    AuthenticationRequired,
    ChargeOutcome,
    GatewayPaymentIntent,
    Invoice,
    Payment,
    PaymentData,
    PaymentFailed,
    PaymentSucceeded,
    StoredSource,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.failures import MSG_INVALID_STATUS, failure_from_exception
from application.services.request_builder import RequestBuilder
from core.logging_config import get_logger
from shared.codes.payment_codes import IntentStatus


logger = get_logger(__name__)

SDK_ACTION = "use_stripe_sdk"


async def settle_intent(gateway: PaymentGateway, intent: GatewayPaymentIntent) -> PaymentSucceeded | PaymentFailed:
    """Resolve a succeeded intent into its charge id and fee."""
    if not intent.charge_id:
        return PaymentFailed(
            raw_message=f"Payment Intent {intent.id} succeeded without a charge",
            raw_code=intent.raw_status,
            user_message=MSG_INVALID_STATUS,
        )
    fee = 0
    if intent.balance_transaction_id:
        balance = await gateway.retrieve_balance_transaction(intent.balance_transaction_id)
        fee = balance.fee
    else:
        logger.warning("charge_missing_balance_transaction", intent_id=intent.id, charge_id=intent.charge_id)
    return PaymentSucceeded(transaction_id=intent.charge_id, fee=fee)


class ChargeService:
    def __init__(self, gateway: PaymentGateway, builder: RequestBuilder) -> None:
        self.gateway = gateway
        self.builder = builder

    async def charge(
        self,
        amount: int,
        currency: str,
        data: Optional[Mapping[str, Any]],
        payment_data: Optional[PaymentData],
        description: str,
        payment: Payment,
        invoice: Invoice,
        success_url: Optional[str],
        error_url: Optional[str],
        customer_present: bool,
        source: Optional[StoredSource] = None,
    ) -> ChargeOutcome:
        """Take a payment.

        Configuration problems (no usable payment source) raise
        DriverConfigurationError; every gateway problem ends in PaymentFailed.
        ``success_url``/``error_url`` belong to the host's checkout flow; the
        return URL for authentication is supplied when the customer comes back.
        """
        req = self.builder.build(
            amount=amount,
            currency=currency,
            description=description,
            invoice=invoice,
            payment=payment,
            data=data,
            payment_data=payment_data,
            customer_present=customer_present,
            source=source,
        )
        logger.info(
            "charge_request",
            invoice_id=invoice.id,
            payment_id=payment.id,
            amount=req.amount,
            currency=req.currency,
            source_kind=req.payment_source.kind,
            off_session=not req.customer_present,
            success_url=success_url,
            error_url=error_url,
        )

        try:
            intent = await self.gateway.create_payment_intent(req)

            if intent.status is IntentStatus.REQUIRES_ACTION and intent.next_action_type == SDK_ACTION:
                logger.info("charge_requires_authentication", intent_id=intent.id, payment_id=payment.id)
                return AuthenticationRequired(intent_id=intent.id)

            if intent.status is not IntentStatus.SUCCEEDED:
                logger.warning("charge_invalid_status", intent_id=intent.id, status=intent.raw_status)
                return PaymentFailed(
                    raw_message=f"Payment Intent {intent.id} returned an invalid status: {intent.raw_status}",
                    raw_code=intent.raw_status,
                    user_message=MSG_INVALID_STATUS,
                )

            outcome = await settle_intent(self.gateway, intent)
        except Exception as exc:
            return failure_from_exception(exc)

        logger.info("charge_response", payment_id=payment.id, status=outcome.status)
        return outcome
