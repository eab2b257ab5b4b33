"""
Stripe customer link repository - SQLAlchemy implementation.
"""
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.payment.entity import StripeCustomer
from domain.payment.repository import StripeCustomerRepository
from infrastructure.models.stripe_customer import StripeCustomerModel


logger = get_logger(__name__)


class SQLAlchemyStripeCustomerRepository(StripeCustomerRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: StripeCustomerModel) -> StripeCustomer:
        return StripeCustomer(
            id=model.id,
            customer_id=model.customer_id,
            stripe_id=model.stripe_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def get_by_customer_id(self, customer_id: int) -> Optional[StripeCustomer]:
        result = await self.session.execute(
            select(StripeCustomerModel).where(StripeCustomerModel.customer_id == customer_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_stripe_id(self, stripe_id: str) -> Optional[StripeCustomer]:
        result = await self.session.execute(
            select(StripeCustomerModel).where(StripeCustomerModel.stripe_id == stripe_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def add(self, link: StripeCustomer) -> StripeCustomer:
        model = StripeCustomerModel(
            customer_id=link.customer_id,
            stripe_id=link.stripe_id,
            created_at=link.created_at,
            updated_at=link.updated_at,
        )
        try:
            self.session.add(model)
            await self.session.flush()
            await self.session.refresh(model)
        except IntegrityError as e:
            logger.warning(
                "stripe_customer_link_conflict",
                customer_id=link.customer_id,
                stripe_id=link.stripe_id,
                error=str(e),
            )
            raise DomainValidationException(
                "Customer is already linked to a Stripe customer",
                field="customer_id",
                details={"customer_id": link.customer_id},
            ) from e
        logger.info("stripe_customer_link_created", customer_id=model.customer_id, stripe_id=model.stripe_id)
        return self._to_entity(model)

    async def delete_by_customer_id(self, customer_id: int) -> bool:
        result = await self.session.execute(
            delete(StripeCustomerModel).where(StripeCustomerModel.customer_id == customer_id)
        )
        return bool(result.rowcount)
