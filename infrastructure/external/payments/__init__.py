"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from application.ports.payment_gateway import PaymentGateway


def get_payment_gateway(api_key: str) -> PaymentGateway:
    """Build a Stripe gateway bound to one secret key."""
    from .stripe_client import StripeGatewayClient
    return StripeGatewayClient(api_key)
