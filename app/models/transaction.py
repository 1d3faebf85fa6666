from sqlalchemy import Column, Integer, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.database.session import Base


class Transaction(Base):
    """Closure record of a completed or cancelled booking."""
    __tablename__ = "transactions"
    __table_args__ = (
        {"extend_existing": True}
    )

    transaction_id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.customer_id", ondelete="RESTRICT"), nullable=False)
    car_id = Column(Integer, ForeignKey("cars.car_id", ondelete="RESTRICT"), nullable=False)
    completion_date = Column(DateTime, nullable=True)
    cancellation_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=func.now(), nullable=False)

    booking = relationship("Booking")
