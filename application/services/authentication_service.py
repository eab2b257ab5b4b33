"""
Strong Customer Authentication: resume a saved PaymentIntent once the customer
returns from the out-of-band challenge.

    succeeded              -> settle, no confirmation
    requires_action        -> confirm(return_url) -> settle | redirect | failed
    requires_confirmation  -> confirm(return_url) -> settle | redirect | failed
    anything else          -> failed
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import (
    GatewayPaymentIntent,
    PaymentFailed,
    RedirectRequired,
    ScaOutcome,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.charge_service import settle_intent
from application.services.failures import MSG_AUTHORISATION, failure_from_exception
from core.logging_config import get_logger
from domain.payment.exceptions import DriverConfigurationError, GatewayError, GatewayErrorKind
from shared.codes.payment_codes import IntentStatus


logger = get_logger(__name__)

CONFIRMABLE = {IntentStatus.REQUIRES_ACTION, IntentStatus.REQUIRES_CONFIRMATION}


def _describe(intent: GatewayPaymentIntent) -> str:
    return f"Intent ID: {intent.id}; Status: {intent.raw_status or intent.status.value}"


class AuthenticationService:
    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway

    async def authenticate(self, intent_id: Optional[str], success_url: Optional[str]) -> ScaOutcome:
        if not intent_id:
            raise DriverConfigurationError("Missing payment intent id for authentication")

        try:
            intent = await self.gateway.retrieve_payment_intent(intent_id)
        except GatewayError as exc:
            if exc.kind is GatewayErrorKind.INVALID_REQUEST:
                raise DriverConfigurationError(
                    "Could not resolve the payment intent",
                    details={"intent_id": intent_id, "error": exc.raw_message},
                ) from exc
            return failure_from_exception(exc)
        except Exception as exc:
            return failure_from_exception(exc)

        logger.info("sca_resume", intent_id=intent.id, status=intent.raw_status)

        try:
            if intent.status is IntentStatus.SUCCEEDED:
                return await settle_intent(self.gateway, intent)

            if intent.status not in CONFIRMABLE:
                logger.warning("sca_unexpected_status", intent_id=intent.id, status=intent.raw_status)
                return PaymentFailed(
                    raw_message=f"{MSG_AUTHORISATION} {_describe(intent)}",
                    raw_code=intent.raw_status,
                    user_message=MSG_AUTHORISATION,
                )

            try:
                confirmed = await self.gateway.confirm_payment_intent(intent.id, success_url)
            except Exception as exc:
                failed = failure_from_exception(exc)
                return PaymentFailed(
                    raw_message=f"{MSG_AUTHORISATION} {_describe(intent)}; Error: {failed.raw_message}",
                    raw_code=failed.raw_code,
                    user_message=failed.user_message,
                )
            return await self._after_confirm(confirmed)
        except Exception as exc:
            return failure_from_exception(exc)

    async def _after_confirm(self, intent: GatewayPaymentIntent) -> ScaOutcome:
        if intent.status is IntentStatus.SUCCEEDED:
            return await settle_intent(self.gateway, intent)

        if intent.redirect_url:
            logger.info("sca_redirect", intent_id=intent.id, action=intent.next_action_type)
            return RedirectRequired(url=intent.redirect_url)

        logger.warning("sca_no_redirect_url", intent_id=intent.id, status=intent.raw_status)
        return PaymentFailed(
            raw_message=f"{MSG_AUTHORISATION} No redirect URL available. {_describe(intent)}",
            raw_code=intent.raw_status,
            user_message=MSG_AUTHORISATION,
        )
