import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_payment_service
from application.services.payment_service import PaymentService
from main import app


@pytest.fixture
def client(gateway, stripe_settings, uow_factory):
    app.dependency_overrides[get_payment_service] = lambda: PaymentService(
        stripe_settings, lambda key: gateway, uow_factory=uow_factory
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_checkout_config(client):
    body = client.get("/api/v1/payments/stripe/config").json()
    assert body["code"] == 0
    assert body["data"] == {"label": "Stripe", "key": "pk_test_123"}


def test_charge_returns_outcome(client):
    payload = {
        "amount": 1000,
        "currency": "usd",
        "invoice": {"id": 42, "ref": "ABC123"},
        "payment": {"id": 9},
        "payment_data": {"token": "tok_visa"},
    }
    resp = client.post("/api/v1/payments/stripe/charges", json=payload)
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "succeeded", "transaction_id": "ch_1", "fee": 59}


def test_declined_charge_is_still_a_success_envelope(client, gateway, make_intent):
    gateway.intent = make_intent("requires_payment_method")
    payload = {
        "amount": 1000,
        "currency": "usd",
        "invoice": {"id": 42, "ref": "ABC123"},
        "payment": {"id": 9},
        "payment_data": {"token": "tok_visa"},
    }
    data = client.post("/api/v1/payments/stripe/charges", json=payload).json()["data"]
    assert data["status"] == "failed"


def test_missing_intent_id_is_a_configuration_error(client):
    resp = client.post("/api/v1/payments/stripe/sca/complete", json={"success_url": "https://shop.test/ok"})
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "DriverConfigurationError"


def test_invalid_currency_is_rejected(client):
    payload = {
        "amount": 1000,
        "currency": "dollars",
        "invoice": {"id": 42, "ref": "ABC123"},
        "payment": {"id": 9},
        "payment_data": {"token": "tok_visa"},
    }
    resp = client.post("/api/v1/payments/stripe/charges", json=payload)
    assert resp.status_code == 422
    assert resp.json()["error"]["field"] == "currency"


def test_source_lifecycle(client, gateway):
    created = client.post(
        "/api/v1/payments/stripe/sources",
        json={"customer": {"id": 7, "email": "jane@example.com"}, "token": "tok_visa"},
    ).json()["data"]
    assert created["label"] == "Visa ending 4242"

    stored = {"id": 1, "customer_id": 7, "data": created["data"]}
    updated = client.patch(
        "/api/v1/payments/stripe/sources", json={"source": stored, "update": {"exp_month": 3}}
    ).json()["data"]
    assert updated["expiry"] == "2028-03-31"

    deleted = client.post("/api/v1/payments/stripe/sources/delete", json=stored).json()
    assert deleted["data"] == {"id": 1}
    assert gateway.called("delete_source") == [{"customer_id": "cus_1", "source_id": "card_1"}]


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/payments/stripe/config", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_outcome_message_names_status(client):
    body = client.post("/api/v1/payments/stripe/sca/complete", json={"intent_id": "pi_1"}).json()
    assert body["message"] == "Authentication succeeded"
    assert body["data"]["transaction_id"] == "ch_1"


def test_customer_sync_and_delete(client, gateway):
    customer = {"id": 7, "email": "jane@example.com", "name": "Jane Doe"}
    unlinked = client.post("/api/v1/payments/stripe/customers/sync", json=customer).json()
    assert unlinked["data"] == {"id": 7, "synced": False}

    client.post("/api/v1/payments/stripe/sources", json={"customer": customer, "token": "tok_visa"})
    synced = client.post("/api/v1/payments/stripe/customers/sync", json=customer).json()
    assert synced["data"] == {"id": 7, "synced": True}

    deleted = client.post("/api/v1/payments/stripe/customers/delete", json=customer).json()
    assert deleted["data"] == {"id": 7, "deleted": True}
    assert deleted["message"] == "Customer deleted"
    assert gateway.called("delete_customer") == [{"customer_id": "cus_1"}]
