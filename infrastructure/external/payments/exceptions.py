"""
Translation of stripe-python exceptions onto the driver's GatewayError taxonomy.
"""
from __future__ import annotations

from typing import Optional

import stripe

from domain.payment.exceptions import GatewayError, GatewayErrorKind


def _decline_message(exc: stripe.CardError) -> Optional[str]:
    body = exc.json_body or {}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return exc.user_message


def translate_stripe_error(exc: Exception, *, provider: str = "stripe") -> GatewayError:
    """Map an SDK exception onto GatewayError. CardError is checked first."""
    message = getattr(exc, "user_message", None) or str(exc) or type(exc).__name__
    code = getattr(exc, "code", None)

    if isinstance(exc, stripe.CardError):
        return GatewayError(
            GatewayErrorKind.CARD_DECLINED,
            message,
            provider=provider,
            raw_code=code,
            decline_message=_decline_message(exc),
        )
    if isinstance(exc, stripe.APIConnectionError):
        kind = GatewayErrorKind.CONNECTION
    elif isinstance(exc, stripe.InvalidRequestError):
        kind = GatewayErrorKind.INVALID_REQUEST
    elif isinstance(exc, stripe.APIError):
        kind = GatewayErrorKind.UNAVAILABLE
    else:
        kind = GatewayErrorKind.UNCLASSIFIED
    return GatewayError(kind, message, provider=provider, raw_code=code)
