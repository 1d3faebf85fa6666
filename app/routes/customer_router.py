from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.crud.users import customer_crud
from app.database.session import get_db
from app.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/customers", tags=["customers"])


def _get_customer_or_404(db: Session, customer_id: int):
    customer = customer_crud.get(db, id=customer_id)
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ResponseWrapper.error(f"Customer {customer_id} not found", "CUSTOMER_NOT_FOUND"),
        )
    return customer


def _create_customer(db: Session, customer_in: CustomerCreate):
    existing = customer_crud.get_by_email_or_username(
        db, email=customer_in.email, username=customer_in.username
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=ResponseWrapper.error(
                "A customer with this email or username already exists",
                "DUPLICATE_RESOURCE",
            ),
        )
    customer = customer_crud.create(db, obj_in=customer_in)
    db.commit()
    db.refresh(customer)
    return customer


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_customer(customer_in: CustomerCreate, db: Session = Depends(get_db)):
    """Public customer sign-up"""
    try:
        customer = _create_customer(db, customer_in)
        logger.info(f"Customer {customer.customer_id} registered ({customer.email})")
        return ResponseWrapper.created(
            data=CustomerResponse.model_validate(customer), message="Registration successful"
        )
    except Exception as e:
        raise handle_route_error(db, e, "register customer")


@router.get("/", status_code=status.HTTP_200_OK)
def list_customers(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = None,
    active_only: Optional[bool] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["customer.read"])),
):
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = customer_crud.search(db, search=search, active_only=active_only)
        total, items = paginate_query(query, skip, per_page)
        return ResponseWrapper.paginated(
            items=[CustomerResponse.model_validate(c) for c in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Customers fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list customers")


@router.get("/{customer_id}", status_code=status.HTTP_200_OK)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["customer.read"])),
):
    try:
        customer = _get_customer_or_404(db, customer_id)
        return ResponseWrapper.success(data=CustomerResponse.model_validate(customer))
    except Exception as e:
        raise handle_route_error(db, e, f"fetch customer {customer_id}")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_customer(
    customer_in: CustomerCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["customer.create"])),
):
    try:
        customer = _create_customer(db, customer_in)
        logger.info(f"Customer {customer.customer_id} created by user {user_data['user_id']}")
        return ResponseWrapper.created(
            data=CustomerResponse.model_validate(customer), message="Customer created successfully"
        )
    except Exception as e:
        raise handle_route_error(db, e, "create customer")


@router.put("/{customer_id}", status_code=status.HTTP_200_OK)
def update_customer(
    customer_id: int,
    customer_in: CustomerUpdate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["customer.update"])),
):
    try:
        customer = _get_customer_or_404(db, customer_id)
        customer = customer_crud.update(db, db_obj=customer, obj_in=customer_in)
        db.commit()
        db.refresh(customer)
        logger.info(f"Customer {customer_id} updated by user {user_data['user_id']}")
        return ResponseWrapper.updated(
            data=CustomerResponse.model_validate(customer), message="Customer updated successfully"
        )
    except Exception as e:
        raise handle_route_error(db, e, f"update customer {customer_id}")


@router.delete("/{customer_id}", status_code=status.HTTP_200_OK)
def deactivate_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["customer.delete"])),
):
    try:
        customer = _get_customer_or_404(db, customer_id)
        customer_crud.update(db, db_obj=customer, obj_in={"is_active": False})
        db.commit()
        logger.info(f"Customer {customer_id} deactivated by user {user_data['user_id']}")
        return ResponseWrapper.deleted(message="Customer deactivated successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"deactivate customer {customer_id}")
