from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional

from app.models.car import CarStatusEnum


class CarBase(BaseModel):
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    license_plate: str = Field(..., min_length=1, max_length=20)
    seats: Optional[int] = Field(None, ge=1, le=60)
    rent_price: float = Field(..., gt=0, description="Daily rate")


class CarCreate(CarBase):
    car_status: CarStatusEnum = CarStatusEnum.AVAILABLE


class CarUpdate(BaseModel):
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1950, le=2100)
    license_plate: Optional[str] = Field(None, min_length=1, max_length=20)
    seats: Optional[int] = Field(None, ge=1, le=60)
    rent_price: Optional[float] = Field(None, gt=0)
    car_status: Optional[CarStatusEnum] = None
    is_active: Optional[bool] = None


class CarResponse(CarBase):
    car_id: int
    car_status: CarStatusEnum
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
