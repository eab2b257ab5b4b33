"""
Saved payment sources and the Stripe customers they hang off.

Every invoicing customer is linked to at most one Stripe customer; the link is
created lazily the first time a source is saved.
"""
from __future__ import annotations

import calendar
from datetime import date
from typing import Callable, Optional

from application.dtos.payments import (
    CardUpdate,
    Customer,
    GatewayCard,
    SourceRecord,
    StoredSource,
)
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import StripeCustomer
from domain.payment.exceptions import DriverConfigurationError


logger = get_logger(__name__)


def _expiry(card: GatewayCard) -> Optional[date]:
    if not card.exp_month or not card.exp_year:
        return None
    last_day = calendar.monthrange(card.exp_year, card.exp_month)[1]
    return date(card.exp_year, card.exp_month, last_day)


def to_source_record(card: GatewayCard, customer_id: str) -> SourceRecord:
    brand = card.brand or "Card"
    return SourceRecord(
        data={"source_id": card.id, "customer_id": customer_id},
        label=f"{brand} ending {card.last4}" if card.last4 else brand,
        brand=card.brand,
        last_four=card.last4,
        expiry=_expiry(card),
        name=card.name,
    )


def _require_ids(source: StoredSource) -> tuple[str, str]:
    source_id, customer_id = source.gateway_ids()
    if not source_id or not customer_id:
        raise DriverConfigurationError(
            "Could not ascertain the source/customer id",
            details={"source_id": source.id},
        )
    return source_id, customer_id


class SourceService:
    def __init__(self, gateway: PaymentGateway, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.gateway = gateway
        self._uow_factory = uow_factory

    async def create_source(self, customer: Customer, token: str) -> SourceRecord:
        stripe_customer_id = await self.ensure_customer(customer)
        card = await self.gateway.create_source(stripe_customer_id, token)
        logger.info("source_created", customer_id=customer.id, source_id=card.id, brand=card.brand)
        return to_source_record(card, stripe_customer_id)

    async def update_source(self, source: StoredSource, update: CardUpdate) -> SourceRecord:
        source_id, customer_id = _require_ids(source)
        card = await self.gateway.update_source(customer_id, source_id, update)
        logger.info("source_updated", source_id=source_id)
        return to_source_record(card, customer_id)

    async def delete_source(self, source: StoredSource) -> None:
        source_id, customer_id = _require_ids(source)
        await self.gateway.delete_source(customer_id, source_id)
        logger.info("source_deleted", source_id=source_id)

    async def ensure_customer(self, customer: Customer) -> str:
        """Return the linked Stripe customer id, creating the customer if needed."""
        async with self._uow_factory() as uow:
            link = await uow.stripe_customer_repository.get_by_customer_id(customer.id)

        if link is not None:
            remote = await self.gateway.retrieve_customer(link.stripe_id)
            if not remote.deleted:
                return link.stripe_id
            logger.warning("stripe_customer_deleted_remotely", customer_id=customer.id, stripe_id=link.stripe_id)

        created = await self.gateway.create_customer(
            email=customer.billing_email or customer.email,
            name=customer.name,
            metadata={"customerId": customer.id},
        )
        try:
            async with self._uow_factory() as uow:
                if link is not None:
                    await uow.stripe_customer_repository.delete_by_customer_id(customer.id)
                await uow.stripe_customer_repository.add(
                    StripeCustomer(id=None, customer_id=customer.id, stripe_id=created.id)
                )
                await uow.commit()
        except Exception:
            logger.error("stripe_customer_link_failed", customer_id=customer.id, stripe_id=created.id, exc_info=True)
            await self._discard_customer(created.id)
            raise
        logger.info("stripe_customer_linked", customer_id=customer.id, stripe_id=created.id)
        return created.id

    async def _discard_customer(self, stripe_id: str) -> None:
        # The remote customer has no local link; remove it so it is not orphaned
        try:
            await self.gateway.delete_customer(stripe_id)
        except Exception:
            logger.warning("stripe_customer_orphaned", stripe_id=stripe_id, exc_info=True)

    async def sync_customer(self, customer: Customer) -> bool:
        """Push contact details to the linked Stripe customer, if any."""
        async with self._uow_factory() as uow:
            link = await uow.stripe_customer_repository.get_by_customer_id(customer.id)
        if link is None:
            return False
        await self.gateway.update_customer(link.stripe_id, customer.billing_email or customer.email, customer.name)
        return True

    async def delete_customer(self, customer: Customer) -> bool:
        async with self._uow_factory() as uow:
            link = await uow.stripe_customer_repository.get_by_customer_id(customer.id)
            if link is None:
                return False
            await self.gateway.delete_customer(link.stripe_id)
            await uow.stripe_customer_repository.delete_by_customer_id(customer.id)
            await uow.commit()
        logger.info("stripe_customer_unlinked", customer_id=customer.id, stripe_id=link.stripe_id)
        return True
