from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Enum, Text, func
from sqlalchemy.orm import relationship
from app.database.session import Base
from enum import Enum as PyEnum


class PaymentMethodEnum(str, PyEnum):
    CASH = "Cash"
    GCASH = "GCash"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        {"extend_existing": True}
    )

    payment_id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id", ondelete="RESTRICT"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    payment_method = Column(Enum(PaymentMethodEnum, native_enum=False), nullable=False)
    gcash_no = Column(String(20), nullable=True)
    reference_no = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    paid_date = Column(DateTime, default=func.now(), nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    booking = relationship("Booking", back_populates="payments")
    customer = relationship("Customer")

    def __repr__(self):
        return f"<Payment(payment_id={self.payment_id}, booking_id={self.booking_id}, amount={self.amount})>"
