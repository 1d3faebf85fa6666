"""
Car waitlist.

Customers queue for a car that is taken, optionally for specific dates.
When a booking on the car is cancelled or completed, the Waiting entries
whose dates are now free move to Notified and the customers get an email.
A notified customer still books through the normal booking flow; booking
the car closes their entry.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.email_service import EmailService
from app.core.exceptions import (
    AlreadyPendingError,
    ForbiddenError,
    InvalidDateError,
    InvalidStateError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from app.core.logging_config import get_logger
from app.crud.booking import booking_crud
from app.crud.car import car_crud
from app.crud.waitlist import waitlist_crud
from app.models.car import CarStatusEnum
from app.models.waitlist import Waitlist, WaitlistStatusEnum, OPEN_WAITLIST_STATUSES
from app.schemas.waitlist import WaitlistCreate
from app.utils.booking_utils import find_conflicts, rental_days
from common_utils import utc_now

logger = get_logger(__name__)


def _renumber(db: Session, car_id: int) -> None:
    for position, entry in enumerate(waitlist_crud.get_waiting_for_car(db, car_id=car_id), start=1):
        entry.position = position


def _dates_free(db: Session, entry: Waitlist) -> bool:
    if entry.requested_start_date is None:
        return True
    conflicts = find_conflicts(
        entry.requested_start_date,
        entry.requested_end_date,
        booking_crud.get_active_for_car(db, car_id=entry.car_id),
        settings.MAINTENANCE_DAYS_AFTER_BOOKING,
    )
    return not conflicts


def join_waitlist(db: Session, customer_id: int, data: WaitlistCreate, now: datetime = None) -> Waitlist:
    now = now or utc_now()
    car = car_crud.get(db, data.car_id)
    if not car or not car.is_active:
        raise NotFoundError(f"Car {data.car_id} not found", error_code="CAR_NOT_FOUND")

    if (data.requested_start_date is None) != (data.requested_end_date is None):
        raise ValidationError("Provide both requested dates or neither")
    if data.requested_start_date is not None:
        rental_days(data.requested_start_date, data.requested_end_date)
        if data.requested_start_date < now.date():
            raise InvalidDateError(
                "Start date cannot be in the past",
                details={"requested_start_date": data.requested_start_date.isoformat()},
            )

    if waitlist_crud.get_open_entry(db, customer_id=customer_id, car_id=car.car_id):
        raise AlreadyPendingError(
            "You are already on the waitlist for this car", error_code="ALREADY_ON_WAITLIST"
        )

    entry = Waitlist(
        customer_id=customer_id,
        car_id=car.car_id,
        requested_start_date=data.requested_start_date,
        requested_end_date=data.requested_end_date,
        purpose=data.purpose,
        status=WaitlistStatusEnum.WAITING,
        created_at=now,
    )
    if (
        data.requested_start_date is not None
        and car.car_status != CarStatusEnum.MAINTENANCE
        and _dates_free(db, entry)
    ):
        raise StateConflictError(
            f"{car.make} {car.model} is available for the requested dates; book it directly",
            error_code="CAR_AVAILABLE",
        )

    entry.position = waitlist_crud.last_position(db, car_id=car.car_id) + 1
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info(f"Customer {customer_id} joined the waitlist of car {car.car_id} at position {entry.position}")
    return entry


def leave_waitlist(db: Session, waitlist_id: int, customer_id: Optional[int] = None) -> Waitlist:
    entry = waitlist_crud.get(db, waitlist_id)
    if not entry:
        raise NotFoundError(f"Waitlist entry {waitlist_id} not found", error_code="WAITLIST_NOT_FOUND")
    if customer_id is not None and entry.customer_id != customer_id:
        raise ForbiddenError("You can only remove your own waitlist entries")
    if entry.status not in OPEN_WAITLIST_STATUSES:
        raise InvalidStateError(f"Waitlist entry is already {entry.status.value}")

    entry.status = WaitlistStatusEnum.CANCELLED
    entry.position = None
    db.flush()
    _renumber(db, entry.car_id)
    db.commit()
    db.refresh(entry)
    logger.info(f"Waitlist entry {waitlist_id} removed from car {entry.car_id}")
    return entry


def list_for_customer(db: Session, customer_id: int) -> List[Waitlist]:
    return waitlist_crud.get_for_customer(db, customer_id=customer_id)


def list_for_car(db: Session, car_id: int) -> List[Waitlist]:
    if not car_crud.get(db, car_id):
        raise NotFoundError(f"Car {car_id} not found", error_code="CAR_NOT_FOUND")
    return waitlist_crud.get_waiting_for_car(db, car_id=car_id)


def close_for_booking(db: Session, customer_id: int, car_id: int) -> None:
    """Mark the customer's open entry for the car as Booked; the caller commits."""
    entry = waitlist_crud.get_open_entry(db, customer_id=customer_id, car_id=car_id)
    if entry is None:
        return
    entry.status = WaitlistStatusEnum.BOOKED
    entry.position = None
    db.flush()
    _renumber(db, car_id)


def notify_car_available(
    db: Session, car_id: int, email_service: EmailService = None, now: datetime = None
) -> List[int]:
    """
    Move Waiting entries whose dates are free to Notified and email them.

    Returns the ids of the notified entries. Delivery failures only log.
    """
    now = now or utc_now()
    car = car_crud.get(db, car_id)
    if not car or not car.is_active or car.car_status == CarStatusEnum.MAINTENANCE:
        return []

    notified = [entry for entry in waitlist_crud.get_waiting_for_car(db, car_id=car_id) if _dates_free(db, entry)]
    if not notified:
        return []

    for entry in notified:
        entry.status = WaitlistStatusEnum.NOTIFIED
        entry.position = None
        entry.notified_at = now
    db.flush()
    _renumber(db, car_id)
    db.commit()
    logger.info(f"Car {car_id} freed up; notified waitlist entries {[e.waitlist_id for e in notified]}")

    if email_service is not None and email_service.is_configured:
        for entry in notified:
            customer = entry.customer
            if customer is None or not customer.email:
                continue
            dates = None
            if entry.requested_start_date is not None:
                dates = f"{entry.requested_start_date} to {entry.requested_end_date}"
            sent = email_service.send_waitlist_notice_email(
                customer.email,
                f"{customer.first_name} {customer.last_name}",
                f"{car.make} {car.model}",
                dates,
            )
            if not sent:
                logger.warning(f"Waitlist notice not delivered for entry {entry.waitlist_id}")

    return [entry.waitlist_id for entry in notified]
