from sqlalchemy import Column, Integer, DateTime, Date, ForeignKey, Enum, Text, func
from sqlalchemy.orm import relationship
from app.database.session import Base
from enum import Enum as PyEnum


class WaitlistStatusEnum(str, PyEnum):
    WAITING = "Waiting"
    NOTIFIED = "Notified"     # car freed up, customer told to book
    BOOKED = "Booked"
    CANCELLED = "Cancelled"   # left the queue


# Statuses that still count as being on the waitlist
OPEN_WAITLIST_STATUSES = (WaitlistStatusEnum.WAITING, WaitlistStatusEnum.NOTIFIED)


class Waitlist(Base):
    __tablename__ = "waitlist"
    __table_args__ = (
        {"extend_existing": True}
    )

    waitlist_id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = Column(Integer, ForeignKey("cars.car_id", ondelete="CASCADE"), nullable=False, index=True)

    # Queue position among Waiting entries of the car; cleared once the entry leaves the queue
    position = Column(Integer, nullable=True)
    requested_start_date = Column(Date, nullable=True)
    requested_end_date = Column(Date, nullable=True)
    purpose = Column(Text, nullable=True)

    status = Column(
        Enum(WaitlistStatusEnum, native_enum=False),
        default=WaitlistStatusEnum.WAITING,
        nullable=False,
        index=True
    )
    notified_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship("Customer")
    car = relationship("Car")

    def __repr__(self):
        return f"<Waitlist(waitlist_id={self.waitlist_id}, car_id={self.car_id}, status='{self.status}')>"
