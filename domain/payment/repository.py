"""
Stripe customer link repository interface.
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import StripeCustomer


class StripeCustomerRepository(ABC):
    """Stripe customer link storage - only what, never how"""

    @abstractmethod
    async def get_by_customer_id(self, customer_id: int) -> Optional[StripeCustomer]:
        """Look up the link by internal customer id"""
        pass

    @abstractmethod
    async def get_by_stripe_id(self, stripe_id: str) -> Optional[StripeCustomer]:
        """Look up the link by Stripe customer id"""
        pass

    @abstractmethod
    async def add(self, link: StripeCustomer) -> StripeCustomer:
        pass

    @abstractmethod
    async def delete_by_customer_id(self, customer_id: int) -> bool:
        pass
