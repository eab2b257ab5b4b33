import pytest

from application.dtos.payments import (
    AuthenticationRequired,
    PaymentData,
    PaymentFailed,
    PaymentSucceeded,
)
from application.services.charge_service import ChargeService
from application.services.request_builder import RequestBuilder
from domain.payment.exceptions import DriverConfigurationError, GatewayError, GatewayErrorKind


async def _charge(service, invoice, payment, **kwargs):
    params = {
        "amount": 1000,
        "currency": "USD",
        "data": {},
        "payment_data": PaymentData(token="tok_visa"),
        "description": "Invoice ABC123",
        "payment": payment,
        "invoice": invoice,
        "success_url": "https://shop.test/success",
        "error_url": "https://shop.test/error",
        "customer_present": True,
    }
    params.update(kwargs)
    return await service.charge(**params)


@pytest.fixture
def service(gateway, stripe_settings):
    return ChargeService(gateway, RequestBuilder(stripe_settings))


@pytest.mark.asyncio
async def test_succeeded_intent_reports_charge_and_fee(service, gateway, invoice, payment):
    outcome = await _charge(service, invoice, payment)
    assert outcome == PaymentSucceeded(transaction_id="ch_1", fee=59)
    assert gateway.called("retrieve_balance_transaction") == [{"transaction_id": "txn_1"}]
    req = gateway.called("create_payment_intent")[0]["req"]
    assert req.amount == 1000
    assert req.payment_source.kind == "token"


@pytest.mark.asyncio
async def test_sdk_action_requires_authentication(service, gateway, make_intent, invoice, payment):
    gateway.intent = make_intent("requires_action", id="pi_sca", next_action_type="use_stripe_sdk")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, AuthenticationRequired)
    assert outcome.intent_id == "pi_sca"
    assert outcome.sca_data == {"id": "pi_sca"}
    assert not gateway.called("retrieve_balance_transaction")


@pytest.mark.asyncio
async def test_legacy_source_action_requires_authentication(service, gateway, make_intent, invoice, payment):
    gateway.intent = make_intent("requires_source_action", next_action_type="use_stripe_sdk")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, AuthenticationRequired)


@pytest.mark.asyncio
async def test_other_status_fails_with_invalid_status(service, gateway, make_intent, invoice, payment):
    gateway.intent = make_intent("requires_payment_method")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)
    assert outcome.raw_code == "requires_payment_method"
    assert "invalid status" in outcome.user_message


@pytest.mark.asyncio
async def test_redirect_action_without_sdk_is_not_authentication(service, gateway, make_intent, invoice, payment):
    gateway.intent = make_intent("requires_action", next_action_type="redirect_to_url")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kind, expected",
    [
        (GatewayErrorKind.CONNECTION, "you may wish to try again"),
        (GatewayErrorKind.INVALID_REQUEST, "rejected"),
        (GatewayErrorKind.UNAVAILABLE, "temporary problem"),
        (GatewayErrorKind.UNCLASSIFIED, "An error occurred"),
    ],
)
async def test_gateway_errors_map_to_failed(service, gateway, invoice, payment, kind, expected):
    gateway.errors["create_payment_intent"] = GatewayError(kind, "boom", raw_code="err_code")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)
    assert expected in outcome.user_message
    assert outcome.raw_message == "boom"
    assert outcome.raw_code == "err_code"


@pytest.mark.asyncio
async def test_card_decline_includes_reason(service, gateway, invoice, payment):
    gateway.errors["create_payment_intent"] = GatewayError(
        GatewayErrorKind.CARD_DECLINED,
        "Your card was declined.",
        raw_code="card_declined",
        decline_message="Your card has insufficient funds.",
    )
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)
    assert outcome.user_message == "The payment card was declined. Your card has insufficient funds."


@pytest.mark.asyncio
async def test_unexpected_exception_never_escapes(service, gateway, invoice, payment):
    gateway.errors["retrieve_balance_transaction"] = RuntimeError("socket closed")
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)
    assert outcome.raw_message == "socket closed"
    assert outcome.raw_code == "RuntimeError"


@pytest.mark.asyncio
async def test_missing_source_raises_before_calling_gateway(service, gateway, invoice, payment):
    with pytest.raises(DriverConfigurationError):
        await _charge(service, invoice, payment, payment_data=PaymentData())
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_succeeded_without_charge_fails(service, gateway, make_intent, invoice, payment):
    gateway.intent = make_intent("succeeded", charge_id=None)
    outcome = await _charge(service, invoice, payment)
    assert isinstance(outcome, PaymentFailed)
