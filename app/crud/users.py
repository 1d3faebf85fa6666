"""
Customer and driver CRUD plus the cross-table account lookup used by login
and password reset.
"""
from typing import Any, Dict, Optional, Tuple, Union
from sqlalchemy import or_
from sqlalchemy.orm import Session, Query

from app.models.admin import Admin
from app.models.customer import Customer
from app.models.driver import Driver
from app.schemas.customer import CustomerCreate, CustomerUpdate
from app.schemas.driver import DriverCreate, DriverUpdate
from app.crud.base import CRUDBase
from common_utils.auth.utils import hash_password

Account = Union[Customer, Admin, Driver]

# Lookup order when an identifier matches more than one table
ACCOUNT_MODELS = (
    ("customer", Customer, "customer_id"),
    ("admin", Admin, "admin_id"),
    ("driver", Driver, "driver_id"),
)


class CRUDAccount(CRUDBase):
    def create(self, db: Session, *, obj_in: Union[Any, Dict[str, Any]]):
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        data = dict(data)
        data["password"] = hash_password(data["password"])
        return super().create(db, obj_in=data)

    def search(self, db: Session, *, search: Optional[str] = None, active_only: Optional[bool] = None) -> Query:
        query = db.query(self.model)
        if active_only is not None:
            query = query.filter(self.model.is_active.is_(active_only))
        if search:
            search_str = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    self.model.first_name.ilike(search_str),
                    self.model.last_name.ilike(search_str),
                    self.model.email.ilike(search_str),
                    self.model.username.ilike(search_str),
                )
            )
        return query.order_by(self._pk)

    def get_by_email_or_username(self, db: Session, *, email: str, username: str):
        return (
            db.query(self.model)
            .filter(or_(self.model.email == email, self.model.username == username))
            .first()
        )


customer_crud = CRUDAccount(Customer)
driver_crud = CRUDAccount(Driver)
admin_crud = CRUDAccount(Admin)


def find_account(db: Session, identifier: str) -> Optional[Tuple[str, Account, int]]:
    """
    Resolve an email, username or contact number to (user_type, account, id).

    Customers are searched first, then admins, then drivers.
    """
    identifier = (identifier or "").strip()
    if not identifier:
        return None

    for user_type, model, pk in ACCOUNT_MODELS:
        account = (
            db.query(model)
            .filter(
                or_(
                    model.email == identifier,
                    model.username == identifier,
                    model.contact_no == identifier,
                )
            )
            .first()
        )
        if account is not None:
            return user_type, account, getattr(account, pk)

    return None


def get_account(db: Session, user_type: str, user_id: int) -> Optional[Account]:
    crud = {"customer": customer_crud, "admin": admin_crud, "driver": driver_crud}.get(user_type)
    return crud.get(db, user_id) if crud else None
