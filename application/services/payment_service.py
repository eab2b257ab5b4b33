"""
Application service exposing the Stripe payment driver to the host framework.

This class depends only on the application PaymentGateway port and DTOs.
Gateway implementations are provided by infrastructure and must be injected
from the composition root (API) as a factory taking the secret key of
the active environment, keeping dependencies one-way and credentials out of
process-wide state.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, Optional

from application.dtos.payments import (
    CardUpdate,
    ChargeOutcome,
    Customer,
    Invoice,
    Payment,
    PaymentData,
    Refund,
    RefundOutcome,
    ScaOutcome,
    SourceRecord,
    StoredSource,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.authentication_service import AuthenticationService
from application.services.charge_service import ChargeService
from application.services.refund_service import RefundService
from application.services.request_builder import RequestBuilder
from application.services.source_service import SourceService
from core.logging_config import get_logger
from core.settings import StripeSettings
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)

GatewayFactory = Callable[[str], PaymentGateway]


class PaymentService:
    def __init__(
        self,
        stripe_settings: StripeSettings,
        gateway_factory: GatewayFactory,
        *,
        live: bool = False,
        uow_factory: Optional[Callable[[], AbstractUnitOfWork]] = None,
    ) -> None:
        self.settings = stripe_settings
        self.live = live
        self._gateway_factory = gateway_factory
        self._uow_factory = uow_factory
        self.builder = RequestBuilder(stripe_settings)

    @property
    def label(self) -> str:
        return self.settings.label

    def public_key(self) -> str:
        """Publishable key for the checkout card widget."""
        return self.settings.public_key(self.live)

    @asynccontextmanager
    async def gateway(self) -> AsyncIterator[PaymentGateway]:
        # Missing keys raise DriverConfigurationError before any IO happens
        gw = self._gateway_factory(self.settings.secret_key(self.live))
        try:
            yield gw
        finally:
            await gw.aclose()

    async def charge(
        self,
        amount: int,
        currency: str,
        data: Optional[Mapping[str, Any]],
        payment_data: Optional[PaymentData],
        description: str,
        payment: Payment,
        invoice: Invoice,
        success_url: Optional[str],
        error_url: Optional[str],
        customer_present: bool,
        source: Optional[StoredSource] = None,
    ) -> ChargeOutcome:
        async with self.gateway() as gw:
            return await ChargeService(gw, self.builder).charge(
                amount,
                currency,
                data,
                payment_data,
                description,
                payment,
                invoice,
                success_url,
                error_url,
                customer_present,
                source,
            )

    async def authenticate(self, intent_id: Optional[str], success_url: Optional[str]) -> ScaOutcome:
        async with self.gateway() as gw:
            return await AuthenticationService(gw).authenticate(intent_id, success_url)

    async def refund(
        self,
        transaction_id: str,
        amount: int,
        currency: str,
        payment_data: Optional[PaymentData],
        reason: Optional[str],
        payment: Payment,
        refund: Refund,
        invoice: Invoice,
    ) -> RefundOutcome:
        async with self.gateway() as gw:
            return await RefundService(gw).refund(
                transaction_id, amount, currency, payment_data, reason, payment, refund, invoice
            )

    async def create_source(self, customer: Customer, token: str) -> SourceRecord:
        async with self.gateway() as gw:
            return await self._sources(gw).create_source(customer, token)

    async def update_source(self, source: StoredSource, update: CardUpdate) -> SourceRecord:
        async with self.gateway() as gw:
            return await self._sources(gw).update_source(source, update)

    async def delete_source(self, source: StoredSource) -> None:
        async with self.gateway() as gw:
            await self._sources(gw).delete_source(source)

    async def sync_customer(self, customer: Customer) -> bool:
        """Push contact changes to the linked Stripe customer; False when none is linked."""
        async with self.gateway() as gw:
            return await self._sources(gw).sync_customer(customer)

    async def delete_customer(self, customer: Customer) -> bool:
        async with self.gateway() as gw:
            return await self._sources(gw).delete_customer(customer)

    def _sources(self, gw: PaymentGateway) -> SourceService:
        if self._uow_factory is None:
            raise RuntimeError("PaymentService requires a unit of work factory for source management")
        return SourceService(gw, self._uow_factory)
