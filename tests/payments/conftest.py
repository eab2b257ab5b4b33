"""Shared payment fixtures: an in-process gateway and unit of work."""
from typing import Optional

import pytest

from application.dtos.payments import (
    BalanceTransaction,
    GatewayCard,
    GatewayCustomer,
    GatewayPaymentIntent,
    GatewayRefund,
    Invoice,
    Customer,
    Payment,
)
from core.settings import StripeSettings
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.repository import StripeCustomerRepository
from shared.codes.payment_codes import normalize_intent_status


def build_intent(status: str, **overrides) -> GatewayPaymentIntent:
    values = {
        "id": "pi_1",
        "status": normalize_intent_status(status),
        "raw_status": status,
        "charge_id": "ch_1",
        "balance_transaction_id": "txn_1",
    }
    values.update(overrides)
    return GatewayPaymentIntent(**values)


class FakeGateway:
    provider = "fake"

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.errors: dict[str, Exception] = {}
        self.intent: Optional[GatewayPaymentIntent] = build_intent("succeeded")
        self.confirmed: Optional[GatewayPaymentIntent] = build_intent("succeeded")
        self.balance_fee = 59
        self.refund_fee = 30
        self.remote_customers: dict[str, GatewayCustomer] = {}
        self.closed = False

    def called(self, name: str) -> list[dict]:
        return [kw for n, kw in self.calls if n == name]

    def _record(self, op: str, /, **kwargs) -> None:
        self.calls.append((op, kwargs))
        exc = self.errors.get(op)
        if exc is not None:
            raise exc

    async def create_payment_intent(self, req):
        self._record("create_payment_intent", req=req)
        return self.intent

    async def retrieve_payment_intent(self, intent_id):
        self._record("retrieve_payment_intent", intent_id=intent_id)
        return self.intent

    async def confirm_payment_intent(self, intent_id, return_url):
        self._record("confirm_payment_intent", intent_id=intent_id, return_url=return_url)
        return self.confirmed

    async def retrieve_balance_transaction(self, transaction_id):
        self._record("retrieve_balance_transaction", transaction_id=transaction_id)
        return BalanceTransaction(id=transaction_id, fee=self.balance_fee)

    async def create_refund(self, charge_id, amount, metadata, idempotency_key=None):
        self._record(
            "create_refund", charge_id=charge_id, amount=amount, metadata=metadata, idempotency_key=idempotency_key
        )
        return GatewayRefund(id="re_1", status="succeeded", fee=self.refund_fee)

    async def create_customer(self, email, name, metadata):
        self._record("create_customer", email=email, name=name, metadata=metadata)
        customer = GatewayCustomer(id=f"cus_{len(self.remote_customers) + 1}", email=email)
        self.remote_customers[customer.id] = customer
        return customer

    async def retrieve_customer(self, customer_id):
        self._record("retrieve_customer", customer_id=customer_id)
        return self.remote_customers.get(customer_id) or GatewayCustomer(id=customer_id, deleted=True)

    async def update_customer(self, customer_id, email, name):
        self._record("update_customer", customer_id=customer_id, email=email, name=name)
        return GatewayCustomer(id=customer_id, email=email)

    async def delete_customer(self, customer_id):
        self._record("delete_customer", customer_id=customer_id)
        self.remote_customers.pop(customer_id, None)

    async def create_source(self, customer_id, token):
        self._record("create_source", customer_id=customer_id, token=token)
        return GatewayCard(id="card_1", brand="Visa", last4="4242", exp_month=2, exp_year=2028)

    async def update_source(self, customer_id, source_id, update):
        self._record("update_source", customer_id=customer_id, source_id=source_id, update=update)
        return GatewayCard(
            id=source_id,
            brand="Visa",
            last4="4242",
            exp_month=update.exp_month or 2,
            exp_year=update.exp_year or 2028,
            name=update.name,
        )

    async def delete_source(self, customer_id, source_id):
        self._record("delete_source", customer_id=customer_id, source_id=source_id)

    async def aclose(self):
        self.closed = True


class InMemoryStripeCustomerRepository(StripeCustomerRepository):
    def __init__(self) -> None:
        self.links = {}

    async def get_by_customer_id(self, customer_id):
        return self.links.get(customer_id)

    async def get_by_stripe_id(self, stripe_id):
        return next((link for link in self.links.values() if link.stripe_id == stripe_id), None)

    async def add(self, link):
        link.id = len(self.links) + 1
        self.links[link.customer_id] = link
        return link

    async def delete_by_customer_id(self, customer_id):
        return self.links.pop(customer_id, None) is not None


class InMemoryUnitOfWork(AbstractUnitOfWork):
    def __init__(self, repository: InMemoryStripeCustomerRepository) -> None:
        super().__init__()
        self.stripe_customer_repository = repository
        self.commits = 0

    async def commit(self) -> None:
        self.commits += 1
        self._committed = True

    async def rollback(self) -> None:
        self._committed = False


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_intent():
    return build_intent


@pytest.fixture
def stripe_settings() -> StripeSettings:
    return StripeSettings(
        key_test_secret="sk_test_123",
        key_test_public="pk_test_123",
        statement_descriptor="INV #{{INVOICE_REF}}",
    )


@pytest.fixture
def customer_repository() -> InMemoryStripeCustomerRepository:
    return InMemoryStripeCustomerRepository()


@pytest.fixture
def uow_factory(customer_repository):
    return lambda: InMemoryUnitOfWork(customer_repository)


@pytest.fixture
def customer() -> Customer:
    return Customer(id=7, email="jane@example.com", billing_email="billing@example.com", name="Jane Doe")


@pytest.fixture
def invoice(customer) -> Invoice:
    return Invoice(id=42, ref="ABC123", customer=customer)


@pytest.fixture
def payment() -> Payment:
    return Payment(id=9)
