from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, func
from sqlalchemy.orm import relationship
from app.database.session import Base


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        {"extend_existing": True}
    )

    customer_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    contact_no = Column(String(20), nullable=True, index=True)
    address = Column(Text, nullable=True)
    driver_license_no = Column(String(50), nullable=True)
    password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship("Booking", back_populates="customer")

    def __repr__(self):
        return f"<Customer(customer_id={self.customer_id}, username='{self.username}')>"
