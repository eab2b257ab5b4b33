"""
Payment driver error taxonomy.

Only the gateway adapter raises GatewayError, translating SDK-native
exceptions at the boundary; services branch on ``kind`` and never on
SDK exception classes.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class GatewayErrorKind(str, Enum):
    CONNECTION = "connection"
    INVALID_REQUEST = "invalid_request"
    UNAVAILABLE = "unavailable"
    CARD_DECLINED = "card_declined"
    UNCLASSIFIED = "unclassified"


_KIND_TO_CODE = {
    GatewayErrorKind.CONNECTION: PaymentCode.PROVIDER_RECOVERABLE,
    GatewayErrorKind.INVALID_REQUEST: PaymentCode.INVALID_REQUEST,
    GatewayErrorKind.UNAVAILABLE: PaymentCode.PROVIDER_RECOVERABLE,
    GatewayErrorKind.CARD_DECLINED: PaymentCode.CARD_DECLINED,
    GatewayErrorKind.UNCLASSIFIED: PaymentCode.PROVIDER_ERROR,
}


class DriverConfigurationError(BusinessException):
    """Integration misuse: missing keys, malformed sources, unknown intents."""

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(
            code=PaymentCode.CONFIGURATION_ERROR,
            message=message,
            error_type="DriverConfigurationError",
            details=details,
        )


class GatewayError(BusinessException):
    def __init__(
        self,
        kind: GatewayErrorKind,
        message: str,
        *,
        provider: str = "stripe",
        raw_code: str | None = None,
        decline_message: str | None = None,
    ):
        self.kind = kind
        self.raw_message = message
        self.raw_code = raw_code
        self.decline_message = decline_message
        super().__init__(
            code=_KIND_TO_CODE[kind],
            message=message,
            error_type="GatewayError",
            details={"provider": provider, "kind": kind.value, "provider_code": raw_code},
        )
