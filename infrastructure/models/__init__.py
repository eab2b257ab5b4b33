"""Infrastructure models package exports."""
from .base import Base, metadata
from .stripe_customer import StripeCustomerModel

__all__ = [
    "Base",
    "metadata",
    "StripeCustomerModel",
]
