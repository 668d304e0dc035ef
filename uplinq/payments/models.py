"""Request bodies for the payment routes (camelCase on the wire)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CheckoutSessionRequest(BaseModel):
    price_id: Optional[str] = Field(default=None, alias="priceId")
    product_name: Optional[str] = Field(default=None, alias="productName")
    product_description: Optional[str] = Field(default=None, alias="productDescription")
    mode: Optional[str] = Field(default=None, description="'subscription' or 'payment' (default)")

    model_config = {"populate_by_name": True}


class PaymentIntentRequest(BaseModel):
    amount: Optional[int] = Field(default=None, description="Amount in the currency's minor unit")
    currency: str = "usd"
    description: Optional[str] = None
