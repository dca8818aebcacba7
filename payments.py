"""
Stripe adapter.

Card details never reach this backend: the client gets a client secret from
create_payment_intent and talks to Stripe directly. The backend only reads the
intent back when an order is placed.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import stripe

import config
from errors import PaymentFailed

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway:
    def __init__(self, api_key: Optional[str], currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency.lower()

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def create_payment_intent(self, amount: int) -> str:
        """Create an intent for `amount` minor units and return its client secret."""
        if not self.configured:
            raise PaymentFailed("Payments are not configured", status_code=502)
        try:
            intent = stripe.PaymentIntent.create(amount=amount, currency=self.currency, api_key=self.api_key)
        except stripe.StripeError as e:
            logger.error("Stripe error creating payment intent: %s", e)
            raise PaymentFailed("Payment intent creation failed.", status_code=502)
        logger.info("Created payment intent %s for %d %s", intent.id, amount, self.currency)
        return intent.client_secret

    def retrieve_payment_intent(self, intent_id: str) -> dict:
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.api_key)
        except stripe.InvalidRequestError:
            raise PaymentFailed("Payment not found")
        except stripe.StripeError as e:
            logger.error("Stripe error retrieving payment intent %s: %s", intent_id, e)
            raise PaymentFailed("Could not verify payment", status_code=502)
        return {"id": intent.id, "status": intent.status, "amount": intent.amount, "currency": intent.currency}

    def verify_payment(self, intent_id: Optional[str], amount: int) -> dict:
        """Check that the intent succeeded for exactly `amount` minor units."""
        if not intent_id:
            raise PaymentFailed("Payment confirmation is required")
        intent = self.retrieve_payment_intent(intent_id)
        if intent["status"] != "succeeded":
            logger.warning("Payment intent %s not succeeded (status=%s)", intent_id, intent["status"])
            raise PaymentFailed("Payment has not succeeded")
        if intent["amount"] != amount or (intent["currency"] or "").lower() != self.currency:
            logger.warning("Payment intent %s amount mismatch: %s %s != %s %s",
                           intent_id, intent["amount"], intent["currency"], amount, self.currency)
            raise PaymentFailed("Payment amount does not match order total")
        return intent


_gateway = PaymentGateway(config.STRIPE_SECRET_KEY, config.PAYMENT_CURRENCY)


def get_payment_gateway() -> PaymentGateway:
    return _gateway
