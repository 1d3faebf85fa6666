from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Enum, func
from sqlalchemy.orm import relationship
from app.database.session import Base
from enum import Enum as PyEnum


class CarStatusEnum(str, PyEnum):
    AVAILABLE = "Available"
    RENTED = "Rented"
    MAINTENANCE = "Maintenance"


class Car(Base):
    __tablename__ = "cars"
    __table_args__ = (
        {"extend_existing": True}
    )

    car_id = Column(Integer, primary_key=True, index=True)
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=True)
    license_plate = Column(String(20), unique=True, nullable=False, index=True)
    seats = Column(Integer, nullable=True)
    rent_price = Column(Float, nullable=False)  # daily rate
    car_status = Column(
        Enum(CarStatusEnum, native_enum=False),
        default=CarStatusEnum.AVAILABLE,
        nullable=False,
        index=True
    )
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    bookings = relationship("Booking", back_populates="car")

    def __repr__(self):
        return f"<Car(car_id={self.car_id}, plate='{self.license_plate}', status='{self.car_status}')>"
