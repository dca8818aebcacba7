from types import SimpleNamespace

import pytest
import stripe

from errors import PaymentFailed
from payments import PaymentGateway, to_minor_units


def test_create_payment_intent_endpoint(client, gateway):
    resp = client.post("/payment/create-payment-intent", json={"amount": 1000})
    assert resp.status_code == 200
    assert resp.json() == {"clientSecret": "pi_1_secret"}
    assert gateway.intents["pi_1"]["amount"] == 1000


@pytest.mark.parametrize("amount", [0, -5, "1000", 10.5, None])
def test_create_payment_intent_rejects_bad_amounts(client, amount):
    resp = client.post("/payment/create-payment-intent", json={"amount": amount})
    assert resp.status_code == 400


def test_to_minor_units():
    assert to_minor_units(10.0) == 1000
    assert to_minor_units(19.99) == 1999
    assert to_minor_units(0.1 + 0.2) == 30


def test_stripe_gateway_creates_intent(monkeypatch):
    calls = {}

    def fake_create(**kwargs):
        calls.update(kwargs)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    gateway = PaymentGateway("sk_test_123", "USD")
    assert gateway.create_payment_intent(1500) == "pi_123_secret_abc"
    assert calls == {"amount": 1500, "currency": "usd", "api_key": "sk_test_123"}


def test_stripe_errors_become_payment_failed(monkeypatch):
    def fake_create(**kwargs):
        raise stripe.APIConnectionError("network down")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    with pytest.raises(PaymentFailed) as exc:
        PaymentGateway("sk_test_123").create_payment_intent(100)
    assert exc.value.status_code == 502


def test_unconfigured_gateway_refuses_to_create_intents():
    with pytest.raises(PaymentFailed) as exc:
        PaymentGateway(None).create_payment_intent(100)
    assert exc.value.status_code == 502


def test_verify_payment(monkeypatch):
    intents = {
        "pi_ok": SimpleNamespace(id="pi_ok", status="succeeded", amount=1000, currency="usd"),
        "pi_pending": SimpleNamespace(id="pi_pending", status="processing", amount=1000, currency="usd"),
    }

    def fake_retrieve(intent_id, **kwargs):
        if intent_id not in intents:
            raise stripe.InvalidRequestError("No such payment_intent", "id")
        return intents[intent_id]

    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)
    gateway = PaymentGateway("sk_test_123")

    assert gateway.verify_payment("pi_ok", 1000)["status"] == "succeeded"
    for intent_id, amount in (("pi_ok", 999), ("pi_pending", 1000), ("pi_nope", 1000), (None, 1000)):
        with pytest.raises(PaymentFailed) as exc:
            gateway.verify_payment(intent_id, amount)
        assert exc.value.status_code == 402
