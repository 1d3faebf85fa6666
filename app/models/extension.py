from sqlalchemy import Column, Integer, DateTime, Date, Float, ForeignKey, Enum, Text, func
from sqlalchemy.orm import relationship
from app.database.session import Base
from enum import Enum as PyEnum


class ExtensionStatusEnum(str, PyEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"            # withdrawn by the customer
    AUTO_CANCELLED = "Auto-Cancelled"  # payment deadline passed or vehicle returned


class Extension(Base):
    __tablename__ = "extensions"
    __table_args__ = (
        {"extend_existing": True}
    )

    extension_id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.booking_id", ondelete="CASCADE"), nullable=False, index=True)

    old_end_date = Column(Date, nullable=False)
    new_end_date = Column(Date, nullable=False)
    additional_days = Column(Integer, nullable=False)
    additional_cost = Column(Float, nullable=False)

    extension_status = Column(
        Enum(ExtensionStatusEnum, native_enum=False),
        default=ExtensionStatusEnum.PENDING,
        nullable=False,
        index=True
    )
    rejection_reason = Column(Text, nullable=True)
    requested_at = Column(DateTime, default=func.now(), nullable=False)
    approve_time = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="extensions")

    def __repr__(self):
        return f"<Extension(extension_id={self.extension_id}, booking_id={self.booking_id}, status='{self.extension_status}')>"
