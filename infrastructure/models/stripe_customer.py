"""
Stripe customer link table - SQLAlchemy ORM model.
注意：这是基础设施层的实现细节，不是领域模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from .base import Base


class StripeCustomerModel(Base):
    """Maps an invoicing customer onto its Stripe customer id."""
    __tablename__ = "driver_invoice_stripe_customer"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, unique=True, index=True, nullable=False, comment="Invoicing customer id")
    stripe_id = Column(String(255), unique=True, index=True, nullable=False, comment="Stripe customer id (cus_...)")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return f"<StripeCustomerModel(customer_id={self.customer_id}, stripe_id={self.stripe_id})>"
