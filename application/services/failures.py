"""
Maps gateway errors onto PaymentFailed outcomes.
"""
from __future__ import annotations

from application.dtos.payments import PaymentFailed
from core.logging_config import get_logger
from domain.payment.exceptions import GatewayError, GatewayErrorKind


logger = get_logger(__name__)

MSG_CONNECTION = "There was a problem connecting to Stripe, you may wish to try again."
MSG_INVALID_REQUEST = "The payment request was rejected by Stripe, you may wish to try again."
MSG_UNAVAILABLE = (
    "There was a problem connecting to Stripe, this is a temporary problem. You may wish to try again."
)
MSG_CARD_DECLINED = "The payment card was declined."
MSG_INVALID_STATUS = "The payment could not be completed, it returned an invalid status."
MSG_AUTHORISATION = "Failed to authorise the payment."

_USER_MESSAGES = {
    GatewayErrorKind.CONNECTION: MSG_CONNECTION,
    GatewayErrorKind.INVALID_REQUEST: MSG_INVALID_REQUEST,
    GatewayErrorKind.UNAVAILABLE: MSG_UNAVAILABLE,
}


def failure_from_exception(exc: Exception, *, operation: str = "payment") -> PaymentFailed:
    """Translate any exception raised while talking to the gateway."""
    if not isinstance(exc, GatewayError):
        logger.error(f"{operation}_unexpected_error", error=str(exc), exc_info=exc)
        return PaymentFailed(
            raw_message=str(exc),
            raw_code=type(exc).__name__,
            user_message=f"An unexpected error occurred while processing the {operation}.",
        )

    if exc.kind is GatewayErrorKind.CARD_DECLINED and operation == "payment":
        reason = exc.decline_message or exc.raw_message
        user_message = f"{MSG_CARD_DECLINED} {reason}".strip()
    elif exc.kind in _USER_MESSAGES:
        user_message = _USER_MESSAGES[exc.kind]
    else:
        user_message = f"An error occurred while processing the {operation}."

    if exc.kind in {GatewayErrorKind.INVALID_REQUEST, GatewayErrorKind.UNCLASSIFIED}:
        # malformed requests need a code fix, not a retry
        logger.error(f"{operation}_gateway_error", kind=exc.kind.value, error=exc.raw_message, code=exc.raw_code)
    else:
        logger.warning(f"{operation}_gateway_error", kind=exc.kind.value, error=exc.raw_message, code=exc.raw_code)

    return PaymentFailed(raw_message=exc.raw_message, raw_code=exc.raw_code, user_message=user_message)
