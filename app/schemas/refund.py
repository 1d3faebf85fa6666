from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from app.models.payment import PaymentMethodEnum
from app.models.refund import RefundTypeEnum


class RefundBase(BaseModel):
    booking_id: int
    refund_amount: float = Field(..., allow_inf_nan=False)
    refund_method: PaymentMethodEnum
    refund_type: Optional[RefundTypeEnum] = None
    gcash_no: Optional[str] = Field(None, max_length=20)
    reference_no: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class RefundCreate(RefundBase):
    pass


class RefundResponse(RefundBase):
    refund_id: int
    customer_id: int
    refund_date: datetime
    created_at: datetime

    balance: Optional[float] = None
    payment_status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
