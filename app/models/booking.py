from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Float,
    ForeignKey, Enum, func, Text, Boolean
)
from sqlalchemy.orm import relationship
from app.database.session import Base
from enum import Enum as PyEnum


class BookingStatusEnum(str, PyEnum):
    PENDING = "Pending"            # submitted, awaiting payment confirmation
    CONFIRMED = "Confirmed"        # payment verified by admin
    IN_PROGRESS = "In Progress"    # vehicle released
    COMPLETED = "Completed"        # vehicle returned
    CANCELLED = "Cancelled"


# Statuses that hold the car for their date range
ACTIVE_BOOKING_STATUSES = (
    BookingStatusEnum.PENDING,
    BookingStatusEnum.CONFIRMED,
    BookingStatusEnum.IN_PROGRESS,
)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        {"extend_existing": True}
    )

    booking_id = Column(Integer, primary_key=True, index=True)

    customer_id = Column(Integer, ForeignKey("customers.customer_id", ondelete="RESTRICT"), nullable=False, index=True)
    car_id = Column(Integer, ForeignKey("cars.car_id", ondelete="RESTRICT"), nullable=False, index=True)
    driver_id = Column(Integer, ForeignKey("drivers.driver_id", ondelete="SET NULL"), nullable=True)
    is_self_driver = Column(Boolean, default=True, nullable=False)
    booking_group_id = Column(String(36), nullable=True, index=True)

    # Booking details
    booking_date = Column(DateTime, default=func.now(), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    pickup_time = Column(String(10), nullable=True)
    dropoff_time = Column(String(10), nullable=True)
    pickup_loc = Column(String(255), nullable=True)
    dropoff_loc = Column(String(255), nullable=True)
    is_deliver = Column(Boolean, default=False, nullable=False)
    deliver_loc = Column(String(255), nullable=True)
    purpose = Column(Text, nullable=True)

    total_amount = Column(Float, nullable=False)

    booking_status = Column(
        Enum(BookingStatusEnum, native_enum=False),
        default=BookingStatusEnum.PENDING,
        nullable=False,
        index=True
    )

    # Pending actions awaiting an admin
    is_cancel = Column(Boolean, default=False, nullable=False)
    is_extend = Column(Boolean, default=False, nullable=False)
    new_end_date = Column(Date, nullable=True)
    extension_payment_deadline = Column(DateTime, nullable=True)
    is_pay = Column(Boolean, default=False, nullable=False)

    # Vehicle hand-over
    is_release = Column(Boolean, default=False, nullable=False)
    is_returned = Column(Boolean, default=False, nullable=False)

    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="bookings")
    car = relationship("Car", back_populates="bookings")
    driver = relationship("Driver", back_populates="bookings")
    payments = relationship("Payment", back_populates="booking", order_by="Payment.payment_id")
    refunds = relationship("Refund", back_populates="booking", order_by="Refund.refund_id")
    extensions = relationship("Extension", back_populates="booking", order_by="Extension.extension_id")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Booking(booking_id={self.booking_id}, status='{self.booking_status}')>"
