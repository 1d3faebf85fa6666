from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.waitlist import Waitlist, WaitlistStatusEnum, OPEN_WAITLIST_STATUSES
from app.schemas.waitlist import WaitlistCreate
from app.crud.base import CRUDBase


class CRUDWaitlist(CRUDBase[Waitlist, WaitlistCreate, WaitlistCreate]):
    def get_waiting_for_car(self, db: Session, *, car_id: int) -> List[Waitlist]:
        return (
            db.query(Waitlist)
            .filter(Waitlist.car_id == car_id, Waitlist.status == WaitlistStatusEnum.WAITING)
            .order_by(Waitlist.position, Waitlist.waitlist_id)
            .all()
        )

    def get_open_entry(self, db: Session, *, customer_id: int, car_id: int) -> Optional[Waitlist]:
        return (
            db.query(Waitlist)
            .filter(
                Waitlist.customer_id == customer_id,
                Waitlist.car_id == car_id,
                Waitlist.status.in_(OPEN_WAITLIST_STATUSES),
            )
            .first()
        )

    def get_for_customer(self, db: Session, *, customer_id: int) -> List[Waitlist]:
        return (
            db.query(Waitlist)
            .filter(
                Waitlist.customer_id == customer_id,
                Waitlist.status.in_(OPEN_WAITLIST_STATUSES),
            )
            .order_by(Waitlist.created_at.desc(), Waitlist.waitlist_id.desc())
            .all()
        )

    def last_position(self, db: Session, *, car_id: int) -> int:
        last = (
            db.query(func.max(Waitlist.position))
            .filter(Waitlist.car_id == car_id, Waitlist.status == WaitlistStatusEnum.WAITING)
            .scalar()
        )
        return last or 0


waitlist_crud = CRUDWaitlist(Waitlist)
