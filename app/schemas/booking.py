from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from typing import Optional, List, Dict, Any

from app.models.booking import BookingStatusEnum
from app.models.extension import ExtensionStatusEnum
from app.utils.balance_utils import summarize_booking
from app.utils.booking_state import lifecycle_state, pending_actions


class BookingBase(BaseModel):
    car_id: int
    driver_id: Optional[int] = None
    is_self_driver: bool = True
    start_date: date
    end_date: date
    pickup_time: Optional[str] = Field(None, max_length=10)
    dropoff_time: Optional[str] = Field(None, max_length=10)
    pickup_loc: Optional[str] = Field(None, max_length=255)
    dropoff_loc: Optional[str] = Field(None, max_length=255)
    is_deliver: bool = False
    deliver_loc: Optional[str] = Field(None, max_length=255)
    purpose: Optional[str] = None


class BookingCreate(BookingBase):
    # Admins may book on behalf of a customer
    customer_id: Optional[int] = None


class GroupBookingCreate(BaseModel):
    """Several cars booked together; every booking shares one booking_group_id"""
    customer_id: Optional[int] = None
    bookings: List[BookingBase] = Field(..., min_length=1, max_length=10)


class ExtensionRequest(BaseModel):
    new_end_date: date


class RejectionRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class BookingResponse(BookingBase):
    booking_id: int
    customer_id: int
    booking_group_id: Optional[str] = None
    booking_date: datetime
    total_amount: float
    booking_status: BookingStatusEnum
    is_cancel: bool
    is_extend: bool
    new_end_date: Optional[date] = None
    extension_payment_deadline: Optional[datetime] = None
    is_pay: bool
    is_release: bool
    is_returned: bool
    created_at: datetime
    updated_at: datetime

    # Derived
    total_paid: float = 0
    total_refunded: float = 0
    balance: float = 0
    payment_status: str = "Unpaid"
    pending_actions: List[str] = []
    lifecycle_state: Optional[str] = None
    car_details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class ExtensionResponse(BaseModel):
    extension_id: int
    booking_id: int
    old_end_date: date
    new_end_date: date
    additional_days: int
    additional_cost: float
    extension_status: ExtensionStatusEnum
    rejection_reason: Optional[str] = None
    requested_at: datetime
    approve_time: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AutoCancelResult(BaseModel):
    expired_extensions: List[int] = []
    cancelled_bookings: List[int] = []
    waitlist_notified: List[int] = []


def serialize_booking(booking) -> Dict[str, Any]:
    """Booking row plus its derived money figures and pending actions"""
    response = BookingResponse.model_validate(booking)
    derived = summarize_booking(booking)
    derived["pending_actions"] = pending_actions(booking)
    derived["lifecycle_state"] = lifecycle_state(booking)
    if booking.car is not None:
        derived["car_details"] = {
            "car_id": booking.car.car_id,
            "make": booking.car.make,
            "model": booking.car.model,
            "license_plate": booking.car.license_plate,
            "rent_price": booking.car.rent_price,
        }
    return response.model_copy(update=derived).model_dump(mode="json")
