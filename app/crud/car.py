from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from app.models.car import Car, CarStatusEnum
from app.schemas.car import CarCreate, CarUpdate
from app.crud.base import CRUDBase


class CRUDCar(CRUDBase[Car, CarCreate, CarUpdate]):
    def get_by_plate(self, db: Session, *, license_plate: str) -> Optional[Car]:
        return db.query(Car).filter(Car.license_plate == license_plate).first()

    def search(
        self,
        db: Session,
        *,
        status: Optional[CarStatusEnum] = None,
        active_only: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> Query:
        query = db.query(Car)

        if status is not None:
            query = query.filter(Car.car_status == status)
        if active_only is not None:
            query = query.filter(Car.is_active.is_(active_only))
        if search:
            search_str = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Car.make.ilike(search_str),
                    Car.model.ilike(search_str),
                    Car.license_plate.ilike(search_str),
                )
            )

        return query.order_by(Car.car_id)


car_crud = CRUDCar(Car)
