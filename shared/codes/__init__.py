"""
Envelope codes shared by the API and domain layers.

Driver and gateway failures use ``shared.codes.payment_codes.PaymentCode``;
the generic codes here only cover the envelope itself.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # Request payload or domain invariant rejected (1xxxx)
    PARAM_VALIDATION_ERROR = 10003

    # Unhandled failure inside the driver (4xxxx)
    SYSTEM_ERROR = 40000


__all__ = ["BusinessCode"]
