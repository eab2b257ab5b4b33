"""
Stripe customer link - maps an invoicing customer onto its Stripe customer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from domain.common.exceptions import DomainValidationException


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StripeCustomer:
    """
    Link between an invoicing customer and a Stripe customer.

    Rules:
    1. one Stripe customer per invoicing customer
    2. the Stripe id is immutable once linked
    """

    id: Optional[int]
    customer_id: int
    stripe_id: str
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if not self.stripe_id or not self.stripe_id.startswith("cus_"):
            raise DomainValidationException("Invalid Stripe customer id", field="stripe_id")
