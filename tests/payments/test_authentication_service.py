import pytest

from application.dtos.payments import PaymentFailed, PaymentSucceeded, RedirectRequired
from application.services.authentication_service import AuthenticationService
from domain.payment.exceptions import DriverConfigurationError, GatewayError, GatewayErrorKind


SUCCESS_URL = "https://shop.test/invoice/42/complete"


@pytest.mark.asyncio
async def test_already_succeeded_intent_is_never_confirmed(gateway):
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert outcome == PaymentSucceeded(transaction_id="ch_1", fee=59)
    assert not gateway.called("confirm_payment_intent")


@pytest.mark.asyncio
async def test_requires_action_confirms_then_settles(gateway, make_intent):
    gateway.intent = make_intent("requires_action", next_action_type="use_stripe_sdk")
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert outcome == PaymentSucceeded(transaction_id="ch_1", fee=59)
    assert gateway.called("confirm_payment_intent") == [{"intent_id": "pi_1", "return_url": SUCCESS_URL}]


@pytest.mark.asyncio
async def test_confirmation_needing_redirect(gateway, make_intent):
    gateway.intent = make_intent("requires_action")
    gateway.confirmed = make_intent(
        "requires_action",
        next_action_type="redirect_to_url",
        redirect_url="https://hooks.stripe.test/3ds",
    )
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert outcome == RedirectRequired(url="https://hooks.stripe.test/3ds")


@pytest.mark.asyncio
async def test_confirmation_without_redirect_url_fails(gateway, make_intent):
    gateway.intent = make_intent("requires_source_action")
    gateway.confirmed = make_intent("requires_action", next_action_type="use_stripe_sdk")
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert isinstance(outcome, PaymentFailed)
    assert "No redirect URL available" in outcome.raw_message
    assert outcome.user_message == "Failed to authorise the payment."


@pytest.mark.asyncio
async def test_confirm_error_reports_intent_and_status(gateway, make_intent):
    gateway.intent = make_intent("requires_confirmation")
    gateway.errors["confirm_payment_intent"] = GatewayError(GatewayErrorKind.CONNECTION, "timed out")
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert isinstance(outcome, PaymentFailed)
    assert "pi_1" in outcome.raw_message
    assert "requires_confirmation" in outcome.raw_message
    assert "timed out" in outcome.raw_message
    assert "try again" in outcome.user_message


@pytest.mark.asyncio
async def test_non_confirmable_status_fails(gateway, make_intent):
    gateway.intent = make_intent("canceled")
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert isinstance(outcome, PaymentFailed)
    assert outcome.raw_code == "canceled"
    assert "Intent ID: pi_1; Status: canceled" in outcome.raw_message
    assert not gateway.called("confirm_payment_intent")


@pytest.mark.asyncio
@pytest.mark.parametrize("intent_id", [None, ""])
async def test_missing_intent_id_is_a_configuration_error(gateway, intent_id):
    with pytest.raises(DriverConfigurationError):
        await AuthenticationService(gateway).authenticate(intent_id, SUCCESS_URL)
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_unknown_intent_id_is_a_configuration_error(gateway):
    gateway.errors["retrieve_payment_intent"] = GatewayError(
        GatewayErrorKind.INVALID_REQUEST, "No such payment_intent: 'pi_missing'", raw_code="resource_missing"
    )
    with pytest.raises(DriverConfigurationError):
        await AuthenticationService(gateway).authenticate("pi_missing", SUCCESS_URL)


@pytest.mark.asyncio
async def test_retrieve_connection_error_fails(gateway):
    gateway.errors["retrieve_payment_intent"] = GatewayError(GatewayErrorKind.UNAVAILABLE, "502")
    outcome = await AuthenticationService(gateway).authenticate("pi_1", SUCCESS_URL)
    assert isinstance(outcome, PaymentFailed)
    assert "temporary problem" in outcome.user_message
