"""
API依赖项 - composition root for the payment driver
"""
from application.services.payment_service import PaymentService
from core.config import settings
from core.settings import payment_settings
from infrastructure.external.payments import get_payment_gateway
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


async def get_payment_service() -> PaymentService:
    return PaymentService(
        payment_settings.stripe,
        get_payment_gateway,
        live=settings.is_production,
        uow_factory=SQLAlchemyUnitOfWork,
    )
