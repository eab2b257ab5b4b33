"""
Payment specific codes and Stripe status normalization.
"""
from __future__ import annotations

from enum import Enum, IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    CONFIGURATION_ERROR = 60002
    INVALID_REQUEST = 60003
    CARD_DECLINED = 60004


class IntentStatus(str, Enum):
    """Normalized PaymentIntent status."""
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_ACTION = "requires_action"
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CAPTURE = "requires_capture"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    CANCELED = "canceled"
    UNKNOWN = "unknown"


# Stripe status -> normalized status. Older API versions report
# requires_source / requires_source_action.
STRIPE_INTENT_STATUS = {
    "requires_confirmation": IntentStatus.REQUIRES_CONFIRMATION,
    "requires_action": IntentStatus.REQUIRES_ACTION,
    "requires_source_action": IntentStatus.REQUIRES_ACTION,
    "requires_payment_method": IntentStatus.REQUIRES_PAYMENT_METHOD,
    "requires_source": IntentStatus.REQUIRES_PAYMENT_METHOD,
    "requires_capture": IntentStatus.REQUIRES_CAPTURE,
    "processing": IntentStatus.PROCESSING,
    "succeeded": IntentStatus.SUCCEEDED,
    "canceled": IntentStatus.CANCELED,
}


def normalize_intent_status(raw: str | None) -> IntentStatus:
    return STRIPE_INTENT_STATUS.get(raw or "", IntentStatus.UNKNOWN)
