"""
Akademi Backend — Payment Schemas
===================================
"""

from typing import Any

from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    """
    Body of POST /create-payment-intent.

    `price` is left untyped: a missing or non-numeric price is reported by the
    payment bridge as a rejected payment (400), not as a schema error.
    """
    price: Any = Field(default=None, description="Price in major currency units, e.g. 19.99")


class PaymentIntentResponse(BaseModel):
    client_secret: str = Field(alias="clientSecret")

    model_config = {"populate_by_name": True}
