import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
from errors import PaymentFailed
from payments import PaymentGateway, get_payment_gateway


class FakeGateway(PaymentGateway):
    """In-memory stand-in for Stripe; verification logic is the real one."""

    def __init__(self, configured=False):
        super().__init__("sk_test_fake" if configured else None, "usd")
        self.intents = {}

    def create_payment_intent(self, amount):
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents[intent_id] = {"id": intent_id, "status": "requires_payment_method", "amount": amount, "currency": "usd"}
        return f"{intent_id}_secret"

    def succeed(self, amount):
        self.create_payment_intent(amount)
        intent_id = f"pi_{len(self.intents)}"
        self.intents[intent_id]["status"] = "succeeded"
        return intent_id

    def retrieve_payment_intent(self, intent_id):
        if intent_id not in self.intents:
            raise PaymentFailed("Payment not found")
        return dict(self.intents[intent_id])


def register(client, email, password="secret"):
    resp = client.post("/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]


@pytest.fixture(autouse=True)
def db(monkeypatch):
    mock_db = mongomock.MongoClient()["food_test"]
    monkeypatch.setattr(database, "db", mock_db)
    main.rate_limiter.reset()
    yield mock_db
    main.app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def gateway():
    fake = FakeGateway()
    main.app.dependency_overrides[get_payment_gateway] = lambda: fake
    return fake


@pytest.fixture
def verifying_gateway():
    fake = FakeGateway(configured=True)
    main.app.dependency_overrides[get_payment_gateway] = lambda: fake
    return fake


@pytest.fixture
def make_client(db):
    def _make(email=None, password="secret", admin=False):
        client = TestClient(main.app)
        if email:
            register(client, email, password)
            if admin:
                db["user"].update_one({"email": email}, {"$set": {"is_admin": True}})
        return client
    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def user_client(make_client):
    return make_client("a@x.com")


@pytest.fixture
def admin_client(make_client):
    return make_client("admin@x.com", admin=True)


@pytest.fixture
def burger(admin_client):
    resp = admin_client.post("/food", json={
        "name": "Classic Burger",
        "description": "Beef patty, lettuce, tomato",
        "price": 5.00,
        "image": "/images/classic.jpg",
        "category": "burger",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()
