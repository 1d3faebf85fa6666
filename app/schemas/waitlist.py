from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Optional

from app.models.waitlist import WaitlistStatusEnum


class WaitlistCreate(BaseModel):
    car_id: int
    # Both or neither; without dates the customer waits for the car in general
    requested_start_date: Optional[date] = None
    requested_end_date: Optional[date] = None
    purpose: Optional[str] = None


class WaitlistResponse(WaitlistCreate):
    waitlist_id: int
    customer_id: int
    position: Optional[int] = None
    status: WaitlistStatusEnum
    notified_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
