"""
Pydantic schemas for the payment gateway round trip.
"""

from decimal import Decimal
from pydantic import BaseModel, Field


class PaymentOrderCreate(BaseModel):
    booking_id: int


class PaymentOrderResponse(BaseModel):
    order_id: str
    booking_id: int
    amount: Decimal
    amount_minor: int
    currency: str
    key_id: str


class PaymentVerify(BaseModel):
    booking_id: int
    order_id: str = Field(..., min_length=1)
    payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class PaymentVerifyResponse(BaseModel):
    success: bool
    booking_id: int
    status: str
