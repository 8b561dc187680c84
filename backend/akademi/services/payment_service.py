"""
Akademi Backend — Payment Bridge
==================================

What:  Creates Stripe PaymentIntents for scholarship application checkout.
How:   Converts the price to integer minor units (cents, round half up) and
       calls PaymentIntent.create through the Stripe SDK. The SDK call is
       blocking, so it runs in Starlette's threadpool.
Who:   Called by POST /create-payment-intent.

Scope:
    No retries, no idempotency key, no webhook handling. Intents are never
    persisted; the caller only receives the client secret.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from akademi.exceptions import PaymentNotConfiguredError, PaymentRejectedError, ValidationError
from akademi.schemas.payment import PaymentIntentResponse

logger = logging.getLogger(__name__)

CURRENCY = "usd"
PAYMENT_METHOD_TYPES = ["card"]

_CENTS = Decimal(100)
_WHOLE = Decimal(1)


def to_minor_units(price: Any) -> int:
    """
    Convert a major-unit price to an integer amount of cents.

    Goes through the decimal text of the value so that 19.995 becomes 2000
    (binary floating point would give 1999.4999...).

    Raises:
        ValidationError: price is missing, non-numeric, not finite or negative.
    """
    if price is None or isinstance(price, bool):
        raise ValidationError(
            message="A numeric price is required to create a payment.",
            field="price",
            context={"price": price},
        )
    try:
        amount = Decimal(str(price).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(
            message=f"Invalid price '{price}'. A numeric price is required to create a payment.",
            field="price",
            context={"price": str(price)},
        ) from e

    if not amount.is_finite() or amount < 0:
        raise ValidationError(
            message=f"Invalid price '{price}'. Price must be a non-negative number.",
            field="price",
            context={"price": str(price)},
        )
    return int((amount * _CENTS).quantize(_WHOLE, rounding=ROUND_HALF_UP))


class PaymentService:
    """
    Stripe-backed charge-intent creation.

    Args:
        secret_key: Stripe secret key; None leaves payments unconfigured.
        client: Pre-built StripeClient (tests inject a mock). Built lazily from
            `secret_key` otherwise.
    """

    def __init__(self, secret_key: Optional[str], client: Any = None):
        self._secret_key = secret_key
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or bool(self._secret_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._secret_key:
                raise PaymentNotConfiguredError()
            self._client = stripe.StripeClient(self._secret_key)
        return self._client

    async def create_intent(self, price: Any) -> PaymentIntentResponse:
        """
        Create a PaymentIntent for `price` and return its client secret.

        Raises:
            PaymentNotConfiguredError: no secret key configured (500).
            ValidationError: price is missing or not a non-negative number (400).
            PaymentRejectedError: Stripe refused the request (400).
        """
        client = self._get_client()
        amount = to_minor_units(price)

        try:
            intent = await run_in_threadpool(
                client.payment_intents.create,
                params={
                    "amount": amount,
                    "currency": CURRENCY,
                    "payment_method_types": PAYMENT_METHOD_TYPES,
                },
            )
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.warning(
                "Stripe rejected payment intent (amount=%d %s): %s",
                amount,
                CURRENCY,
                message,
            )
            raise PaymentRejectedError(
                message=message,
                context={"code": e.code, "http_status": e.http_status},
            ) from e

        logger.info("Payment intent %s created (amount=%d %s)", intent.id, amount, CURRENCY)
        return PaymentIntentResponse(client_secret=intent.client_secret)
