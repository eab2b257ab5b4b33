"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
Every method may raise ``domain.payment.exceptions.GatewayError``; no
SDK-specific exception crosses this boundary.
"""
from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    BalanceTransaction,
    CardUpdate,
    ChargeRequest,
    GatewayCard,
    GatewayCustomer,
    GatewayPaymentIntent,
    GatewayRefund,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the card-payment provider.

    Implementations are async and side-effect free beyond IO.
    """

    provider: str

    async def create_payment_intent(self, req: ChargeRequest) -> GatewayPaymentIntent: ...

    async def retrieve_payment_intent(self, intent_id: str) -> GatewayPaymentIntent: ...

    async def confirm_payment_intent(self, intent_id: str, return_url: Optional[str]) -> GatewayPaymentIntent: ...

    async def retrieve_balance_transaction(self, transaction_id: str) -> BalanceTransaction: ...

    async def create_refund(
        self,
        charge_id: str,
        amount: int,
        metadata: dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> GatewayRefund: ...

    async def create_customer(
        self,
        email: Optional[str],
        name: Optional[str],
        metadata: dict[str, Any],
    ) -> GatewayCustomer: ...

    async def retrieve_customer(self, customer_id: str) -> GatewayCustomer: ...

    async def update_customer(self, customer_id: str, email: Optional[str], name: Optional[str]) -> GatewayCustomer: ...

    async def delete_customer(self, customer_id: str) -> None: ...

    async def create_source(self, customer_id: str, token: str) -> GatewayCard: ...

    async def update_source(self, customer_id: str, source_id: str, update: CardUpdate) -> GatewayCard: ...

    async def delete_source(self, customer_id: str, source_id: str) -> None: ...

    async def aclose(self) -> None: ...
