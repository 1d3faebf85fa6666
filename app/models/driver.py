from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, func
from sqlalchemy.orm import relationship
from app.database.session import Base


class Driver(Base):
    __tablename__ = "drivers"
    __table_args__ = (
        {"extend_existing": True}
    )

    driver_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    contact_no = Column(String(20), nullable=True, index=True)
    password = Column(String(255), nullable=False)

    # License info
    license_number = Column(String(100), nullable=True)
    license_expiry_date = Column(Date, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship("Booking", back_populates="driver")

    def __repr__(self):
        return f"<Driver(driver_id={self.driver_id}, username='{self.username}')>"
