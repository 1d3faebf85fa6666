from datetime import date, datetime
from typing import Optional, List
from sqlalchemy import or_
from sqlalchemy.orm import Session, Query
from app.models.booking import Booking, BookingStatusEnum, ACTIVE_BOOKING_STATUSES
from app.models.car import Car
from app.models.customer import Customer
from app.models.extension import Extension, ExtensionStatusEnum
from app.schemas.booking import BookingCreate
from app.crud.base import CRUDBase


class CRUDBooking(CRUDBase[Booking, BookingCreate, BookingCreate]):
    def get_by_id(self, db: Session, *, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.booking_id == booking_id).first()

    def get_for_update(self, db: Session, *, booking_id: int) -> Optional[Booking]:
        """Load a booking and take a row lock on it (no-op lock on SQLite)."""
        return (
            db.query(Booking)
            .filter(Booking.booking_id == booking_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def search(
        self,
        db: Session,
        *,
        customer_id: Optional[int] = None,
        status: Optional[BookingStatusEnum] = None,
        search: Optional[str] = None,
    ) -> Query:
        query = db.query(Booking)

        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if status is not None:
            query = query.filter(Booking.booking_status == status)
        if search:
            search_str = f"%{search.strip()}%"
            query = (
                query.join(Customer, Booking.customer_id == Customer.customer_id)
                .join(Car, Booking.car_id == Car.car_id)
                .filter(
                    or_(
                        Customer.first_name.ilike(search_str),
                        Customer.last_name.ilike(search_str),
                        Customer.email.ilike(search_str),
                        Car.make.ilike(search_str),
                        Car.model.ilike(search_str),
                        Car.license_plate.ilike(search_str),
                    )
                )
            )

        return query.order_by(Booking.booking_date.desc(), Booking.booking_id.desc())

    def get_active_for_car(
        self, db: Session, *, car_id: int, exclude_booking_id: Optional[int] = None
    ) -> List[Booking]:
        query = db.query(Booking).filter(
            Booking.car_id == car_id,
            Booking.booking_status.in_(ACTIVE_BOOKING_STATUSES),
        )
        if exclude_booking_id is not None:
            query = query.filter(Booking.booking_id != exclude_booking_id)
        return query.all()

    def get_unpaid_pending(self, db: Session) -> List[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.booking_status == BookingStatusEnum.PENDING,
                Booking.is_pay.is_(False),
                Booking.is_cancel.is_(False),
            )
            .all()
        )

    def get_expired_extensions(self, db: Session, *, now: datetime) -> List[Booking]:
        return (
            db.query(Booking)
            .filter(
                Booking.is_extend.is_(True),
                Booking.extension_payment_deadline.isnot(None),
                Booking.extension_payment_deadline < now,
            )
            .all()
        )

    def get_pending_extension(self, db: Session, *, booking_id: int) -> Optional[Extension]:
        return (
            db.query(Extension)
            .filter(
                Extension.booking_id == booking_id,
                Extension.extension_status == ExtensionStatusEnum.PENDING,
            )
            .order_by(Extension.extension_id.desc())
            .first()
        )

    def get_extensions(self, db: Session, *, booking_id: int) -> List[Extension]:
        return (
            db.query(Extension)
            .filter(Extension.booking_id == booking_id)
            .order_by(Extension.extension_id.desc())
            .all()
        )


booking_crud = CRUDBooking(Booking)
