"""
Booking lifecycle operations.

Each operation runs in one database transaction: it loads the booking with
a row lock, checks the guard from ``app.utils.booking_state``, applies the
change and commits. Booking rows carry a version counter, so a concurrent
writer that slipped past the lock fails with ``StaleDataError`` at flush.
"""
import uuid
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.email_service import EmailService
from app.core.exceptions import (
    ForbiddenError,
    InvalidDateError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from app.core.logging_config import get_logger
from app.crud.booking import booking_crud
from app.crud.car import car_crud
from app.crud.users import customer_crud, driver_crud
from app.models.booking import Booking, BookingStatusEnum
from app.models.car import CarStatusEnum
from app.models.extension import Extension, ExtensionStatusEnum
from app.models.transaction import Transaction
from app.schemas.booking import BookingBase
from app.services import waitlist_service
from app.utils import booking_state
from app.utils.balance_utils import summarize_booking
from app.utils.booking_utils import extension_days, find_conflicts, rental_days
from common_utils import utc_now

logger = get_logger(__name__)


def get_booking(db: Session, booking_id: int, customer_id: Optional[int] = None) -> Booking:
    booking = booking_crud.get_by_id(db, booking_id=booking_id)
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found", error_code="BOOKING_NOT_FOUND")
    _ensure_owner(booking, customer_id)
    return booking


def lock_booking(db: Session, booking_id: int, customer_id: Optional[int] = None) -> Booking:
    booking = booking_crud.get_for_update(db, booking_id=booking_id)
    if not booking:
        raise NotFoundError(f"Booking {booking_id} not found", error_code="BOOKING_NOT_FOUND")
    _ensure_owner(booking, customer_id)
    return booking


def _ensure_owner(booking: Booking, customer_id: Optional[int]) -> None:
    # customer_id is None for admin/staff callers
    if customer_id is not None and booking.customer_id != customer_id:
        raise ForbiddenError("You can only access your own bookings")


def _commit(db: Session, booking: Booking) -> Booking:
    db.commit()
    db.refresh(booking)
    return booking


def _close_booking(db: Session, booking: Booking, *, completed_at: datetime = None, cancelled_at: datetime = None) -> None:
    db.add(Transaction(
        booking_id=booking.booking_id,
        customer_id=booking.customer_id,
        car_id=booking.car_id,
        completion_date=completed_at,
        cancellation_date=cancelled_at,
    ))


def _notify(email_service: Optional[EmailService], booking: Booking, headline: str) -> None:
    """Best-effort customer notice sent after commit; failures only log."""
    if email_service is None or not email_service.is_configured:
        return
    customer = booking.customer
    if customer is None or not customer.email:
        return

    money = summarize_booking(booking)
    sent = email_service.send_booking_notice_email(
        customer.email,
        {
            "booking_id": booking.booking_id,
            "customer_name": f"{customer.first_name} {customer.last_name}",
            "car": f"{booking.car.make} {booking.car.model}" if booking.car else None,
            "start_date": booking.start_date,
            "end_date": booking.end_date,
            "total_amount": money["total_amount"],
            "balance": money["balance"],
        },
        headline,
    )
    if not sent:
        logger.warning(f"Booking notice '{headline}' not delivered for booking {booking.booking_id}")


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def _conflict_details(conflicts: List[Dict]) -> Dict:
    return {
        "conflicts": [
            {
                "start_date": c["start_date"].isoformat(),
                "end_date": c["end_date"].isoformat(),
                "reason": c["reason"],
            }
            for c in conflicts
        ]
    }


def _build_booking(
    db: Session,
    customer_id: int,
    data: BookingBase,
    now: datetime,
    booking_group_id: Optional[str] = None,
) -> Booking:
    car = car_crud.get(db, data.car_id)
    if not car or not car.is_active:
        raise NotFoundError(f"Car {data.car_id} not found", error_code="CAR_NOT_FOUND")
    if car.car_status == CarStatusEnum.MAINTENANCE:
        raise StateConflictError(
            f"{car.make} {car.model} is under maintenance",
            error_code="CAR_UNAVAILABLE",
        )

    days = rental_days(data.start_date, data.end_date)
    if data.start_date < now.date():
        raise InvalidDateError(
            "Start date cannot be in the past",
            details={"start_date": data.start_date.isoformat()},
        )

    if data.driver_id is not None:
        driver = driver_crud.get(db, data.driver_id)
        if not driver or not driver.is_active:
            raise NotFoundError(f"Driver {data.driver_id} not found", error_code="DRIVER_NOT_FOUND")

    if data.is_deliver and not data.deliver_loc:
        raise ValidationError("Delivery location is required when delivery is selected")

    conflicts = find_conflicts(
        data.start_date,
        data.end_date,
        booking_crud.get_active_for_car(db, car_id=car.car_id),
        settings.MAINTENANCE_DAYS_AFTER_BOOKING,
    )
    if conflicts:
        raise StateConflictError(
            f"{car.make} {car.model} is not available for the requested dates",
            error_code="CAR_UNAVAILABLE",
            details=_conflict_details(conflicts),
        )

    booking = Booking(
        customer_id=customer_id,
        car_id=car.car_id,
        driver_id=data.driver_id,
        is_self_driver=data.is_self_driver if data.driver_id is None else False,
        booking_group_id=booking_group_id,
        booking_date=now,
        start_date=data.start_date,
        end_date=data.end_date,
        pickup_time=data.pickup_time,
        dropoff_time=data.dropoff_time,
        pickup_loc=data.pickup_loc,
        dropoff_loc=data.dropoff_loc,
        is_deliver=data.is_deliver,
        deliver_loc=data.deliver_loc,
        purpose=data.purpose,
        total_amount=round(days * float(car.rent_price), 2),
        booking_status=BookingStatusEnum.PENDING,
    )
    db.add(booking)
    db.flush()
    waitlist_service.close_for_booking(db, customer_id, car.car_id)
    return booking


def _ensure_customer(db: Session, customer_id: Optional[int]) -> None:
    if customer_id is None:
        raise ValidationError("customer_id is required")
    customer = customer_crud.get(db, customer_id)
    if not customer or not customer.is_active:
        raise NotFoundError(f"Customer {customer_id} not found", error_code="CUSTOMER_NOT_FOUND")


def create_booking(db: Session, customer_id: int, data: BookingBase, now: datetime = None) -> Booking:
    now = now or utc_now()
    _ensure_customer(db, customer_id)
    booking = _build_booking(db, customer_id, data, now)
    logger.info(
        f"Booking {booking.booking_id} created for customer {customer_id}, "
        f"car {booking.car_id}, total {booking.total_amount}"
    )
    return _commit(db, booking)


def create_group_booking(
    db: Session, customer_id: int, items: List[BookingBase], now: datetime = None
) -> List[Booking]:
    now = now or utc_now()
    _ensure_customer(db, customer_id)
    group_id = str(uuid.uuid4())

    bookings = [_build_booking(db, customer_id, item, now, booking_group_id=group_id) for item in items]
    db.commit()
    for booking in bookings:
        db.refresh(booking)

    logger.info(f"Group booking {group_id} created with {len(bookings)} cars for customer {customer_id}")
    return bookings


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

def request_cancellation(db: Session, booking_id: int, customer_id: Optional[int] = None) -> Booking:
    booking = lock_booking(db, booking_id, customer_id)
    booking_state.ensure_can_request_cancellation(booking)

    booking.is_cancel = True
    logger.info(f"Cancellation requested for booking {booking_id}")
    return _commit(db, booking)


def approve_cancellation(
    db: Session, booking_id: int, now: datetime = None, email_service: EmailService = None
) -> Booking:
    now = now or utc_now()
    booking = lock_booking(db, booking_id)
    booking_state.ensure_cancellation_pending(booking)

    booking.is_cancel = False
    booking.booking_status = BookingStatusEnum.CANCELLED
    _close_booking(db, booking, cancelled_at=now)
    booking = _commit(db, booking)

    logger.info(f"Cancellation approved for booking {booking_id}")
    _notify(email_service, booking, "Booking Cancellation Approved")
    waitlist_service.notify_car_available(db, booking.car_id, email_service=email_service, now=now)
    return booking


def reject_cancellation(db: Session, booking_id: int, reason: Optional[str] = None) -> Booking:
    booking = lock_booking(db, booking_id)
    booking_state.ensure_cancellation_pending(booking)

    booking.is_cancel = False
    logger.info(f"Cancellation rejected for booking {booking_id}: {reason or 'no reason given'}")
    return _commit(db, booking)


def cancel_cancellation_request(db: Session, booking_id: int, customer_id: Optional[int] = None) -> Booking:
    booking = lock_booking(db, booking_id, customer_id)
    booking_state.ensure_cancellation_pending(booking)

    booking.is_cancel = False
    logger.info(f"Cancellation request withdrawn for booking {booking_id}")
    return _commit(db, booking)


def admin_cancel_booking(
    db: Session, booking_id: int, now: datetime = None, email_service: EmailService = None
) -> Booking:
    now = now or utc_now()
    booking = lock_booking(db, booking_id)
    booking_state.ensure_can_admin_cancel(booking)

    booking.is_cancel = False
    booking.booking_status = BookingStatusEnum.CANCELLED
    _close_booking(db, booking, cancelled_at=now)
    booking = _commit(db, booking)

    logger.info(f"Booking {booking_id} cancelled by admin")
    _notify(email_service, booking, "Booking Cancelled")
    waitlist_service.notify_car_available(db, booking.car_id, email_service=email_service, now=now)
    return booking


# ---------------------------------------------------------------------------
# Extension
# ---------------------------------------------------------------------------

def _clear_extension(booking: Booking) -> None:
    booking.is_extend = False
    booking.new_end_date = None
    booking.extension_payment_deadline = None


def _close_pending_extension(
    db: Session,
    booking: Booking,
    status: ExtensionStatusEnum,
    reason: Optional[str] = None,
    now: datetime = None,
) -> Optional[Extension]:
    extension = booking_crud.get_pending_extension(db, booking_id=booking.booking_id)
    if extension is not None:
        extension.extension_status = status
        extension.rejection_reason = reason
        if status == ExtensionStatusEnum.APPROVED:
            extension.approve_time = now
    return extension


def _ensure_extension_free(db: Session, booking: Booking, new_end_date: date) -> None:
    conflicts = find_conflicts(
        booking.end_date + timedelta(days=1),
        new_end_date,
        booking_crud.get_active_for_car(db, car_id=booking.car_id, exclude_booking_id=booking.booking_id),
        maintenance_days=0,
    )
    if conflicts:
        raise StateConflictError(
            "The car is booked by another customer during the requested extension",
            error_code="CAR_UNAVAILABLE",
            details=_conflict_details(conflicts),
        )


def request_extension(
    db: Session,
    booking_id: int,
    new_end_date: date,
    customer_id: Optional[int] = None,
    now: datetime = None,
) -> Booking:
    now = now or utc_now()
    booking = lock_booking(db, booking_id, customer_id)
    booking_state.ensure_can_request_extension(booking)

    days = extension_days(booking.end_date, new_end_date)

    _ensure_extension_free(db, booking, new_end_date)

    additional_cost = round(days * float(booking.car.rent_price), 2)

    booking.is_extend = True
    booking.new_end_date = new_end_date
    booking.extension_payment_deadline = now + timedelta(hours=settings.EXTENSION_PAYMENT_WINDOW_HOURS)
    db.add(Extension(
        booking_id=booking.booking_id,
        old_end_date=booking.end_date,
        new_end_date=new_end_date,
        additional_days=days,
        additional_cost=additional_cost,
        extension_status=ExtensionStatusEnum.PENDING,
        requested_at=now,
    ))

    logger.info(
        f"Extension requested for booking {booking_id}: {booking.end_date} -> {new_end_date}, "
        f"{days} days, additional cost {additional_cost}"
    )
    return _commit(db, booking)


def approve_extension(
    db: Session, booking_id: int, now: datetime = None, email_service: EmailService = None
) -> Booking:
    now = now or utc_now()
    booking = lock_booking(db, booking_id)
    booking_state.ensure_extension_pending(booking)

    _ensure_extension_free(db, booking, booking.new_end_date)
    extension = _close_pending_extension(db, booking, ExtensionStatusEnum.APPROVED, now=now)
    if extension is not None:
        additional_cost = extension.additional_cost
    else:
        # Staged without a history row; price it from the car's current rate
        additional_cost = round(
            extension_days(booking.end_date, booking.new_end_date) * float(booking.car.rent_price), 2
        )

    old_end_date = booking.end_date
    booking.end_date = booking.new_end_date
    booking.total_amount = round(float(booking.total_amount) + additional_cost, 2)
    _clear_extension(booking)
    booking = _commit(db, booking)

    logger.info(
        f"Extension approved for booking {booking_id}: {old_end_date} -> {booking.end_date}, "
        f"total now {booking.total_amount}"
    )
    _notify(email_service, booking, "Booking Extension Approved")
    return booking


def reject_extension(db: Session, booking_id: int, reason: Optional[str] = None) -> Booking:
    booking = lock_booking(db, booking_id)
    booking_state.ensure_extension_pending(booking)

    _close_pending_extension(db, booking, ExtensionStatusEnum.REJECTED, reason=reason)
    _clear_extension(booking)
    logger.info(f"Extension rejected for booking {booking_id}: {reason or 'no reason given'}")
    return _commit(db, booking)


def cancel_extension_request(db: Session, booking_id: int, customer_id: Optional[int] = None) -> Booking:
    booking = lock_booking(db, booking_id, customer_id)
    booking_state.ensure_extension_pending(booking)

    _close_pending_extension(db, booking, ExtensionStatusEnum.CANCELLED)
    _clear_extension(booking)
    logger.info(f"Extension request withdrawn for booking {booking_id}")
    return _commit(db, booking)


def list_extensions(db: Session, booking_id: int, customer_id: Optional[int] = None) -> List[Extension]:
    get_booking(db, booking_id, customer_id)
    return booking_crud.get_extensions(db, booking_id=booking_id)


# ---------------------------------------------------------------------------
# Vehicle hand-over
# ---------------------------------------------------------------------------

def release_vehicle(db: Session, booking_id: int) -> Booking:
    booking = lock_booking(db, booking_id)
    booking_state.ensure_can_release(booking)

    booking.booking_status = BookingStatusEnum.IN_PROGRESS
    booking.is_release = True
    booking.car.car_status = CarStatusEnum.RENTED
    logger.info(f"Vehicle {booking.car_id} released for booking {booking_id}")
    return _commit(db, booking)


def return_vehicle(
    db: Session, booking_id: int, now: datetime = None, email_service: EmailService = None
) -> Booking:
    now = now or utc_now()
    booking = lock_booking(db, booking_id)
    booking_state.ensure_can_return(booking)

    if booking.is_extend:
        _close_pending_extension(
            db, booking, ExtensionStatusEnum.AUTO_CANCELLED,
            reason="Vehicle returned before the extension was approved",
        )
        _clear_extension(booking)
        logger.info(f"Pending extension of booking {booking_id} auto-cancelled on return")

    booking.booking_status = BookingStatusEnum.COMPLETED
    booking.is_returned = True
    booking.car.car_status = CarStatusEnum.AVAILABLE
    _close_booking(db, booking, completed_at=now)
    logger.info(f"Vehicle {booking.car_id} returned, booking {booking_id} completed")
    booking = _commit(db, booking)
    waitlist_service.notify_car_available(db, booking.car_id, email_service=email_service, now=now)
    return booking
