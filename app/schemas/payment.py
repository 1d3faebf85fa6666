from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from app.models.payment import PaymentMethodEnum


class PaymentBase(BaseModel):
    booking_id: int
    amount: float = Field(..., allow_inf_nan=False)
    payment_method: PaymentMethodEnum
    gcash_no: Optional[str] = Field(None, max_length=20)
    reference_no: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class PaymentCreate(PaymentBase):
    customer_id: Optional[int] = None


class PaymentResponse(PaymentBase):
    payment_id: int
    customer_id: int
    paid_date: datetime
    created_at: datetime

    # Booking figures after this payment
    balance: Optional[float] = None
    payment_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
