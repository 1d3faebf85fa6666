from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Enum, Text, func
from sqlalchemy.orm import relationship
from app.database.session import Base
from app.models.payment import PaymentMethodEnum
from enum import Enum as PyEnum


class RefundTypeEnum(str, PyEnum):
    HALF = "50%"
    THREE_QUARTERS = "75%"
    FULL = "100%"
    SECURITY_DEPOSIT = "Security Deposit"


class Refund(Base):
    __tablename__ = "refunds"
    __table_args__ = (
        {"extend_existing": True}
    )

    refund_id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id", ondelete="RESTRICT"), nullable=False, index=True)

    refund_method = Column(Enum(PaymentMethodEnum, native_enum=False), nullable=False)
    gcash_no = Column(String(20), nullable=True)
    reference_no = Column(String(100), nullable=True)
    refund_amount = Column(Float, nullable=False)
    refund_type = Column(Enum(RefundTypeEnum, native_enum=False), nullable=True)
    description = Column(Text, nullable=True)
    refund_date = Column(DateTime, default=func.now(), nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    booking = relationship("Booking", back_populates="refunds")
    customer = relationship("Customer")

    def __repr__(self):
        return f"<Refund(refund_id={self.refund_id}, booking_id={self.booking_id}, amount={self.refund_amount})>"
