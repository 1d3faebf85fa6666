from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database.session import get_db
from app.models.payment import Payment, PaymentMethodEnum
from app.schemas.payment import PaymentBase, PaymentCreate, PaymentResponse
from app.services import payment_service
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/payments", tags=["payments"])


def _payment_data(payment: Payment, summary: Optional[dict] = None) -> dict:
    response = PaymentResponse.model_validate(payment)
    if summary:
        response = response.model_copy(update={
            "balance": summary["balance"],
            "payment_status": summary["payment_status"],
        })
    return response.model_dump(mode="json")


def _list_payments(db: Session, page: int, page_size: int, **filters):
    page, per_page, skip = validate_pagination_params(page, page_size)
    query = db.query(Payment)
    for attr, value in filters.items():
        if value is not None:
            query = query.filter(getattr(Payment, attr) == value)
    query = query.order_by(Payment.paid_date.desc(), Payment.payment_id.desc())
    total, items = paginate_query(query, skip, per_page)
    return ResponseWrapper.paginated(
        items=[_payment_data(p) for p in items],
        total=total,
        page=page,
        per_page=per_page,
        message="Payments fetched successfully",
    )


@router.get("/", status_code=status.HTTP_200_OK)
def list_payments(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    booking_id: Optional[int] = None,
    payment_method: Optional[PaymentMethodEnum] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.read"])),
):
    try:
        return _list_payments(db, page, page_size, booking_id=booking_id, payment_method=payment_method)
    except Exception as e:
        raise handle_route_error(db, e, "list payments")


@router.get("/my-payments", status_code=status.HTTP_200_OK)
def list_my_payments(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    booking_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.read_own"])),
):
    try:
        return _list_payments(
            db, page, page_size, customer_id=int(user_data["user_id"]), booking_id=booking_id
        )
    except Exception as e:
        raise handle_route_error(db, e, "list customer payments")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_payment(
    payment_in: PaymentCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.create"])),
):
    """Payment entered by admin/staff; taken as verified"""
    try:
        payment, summary = payment_service.record_payment(db, payment_in)
        logger.info(f"Payment {payment.payment_id} entered by user {user_data['user_id']}")
        return ResponseWrapper.created(data=_payment_data(payment, summary), message="Payment recorded successfully")
    except Exception as e:
        raise handle_route_error(db, e, "record payment")


@router.post("/process-booking-payment", status_code=status.HTTP_201_CREATED)
def process_booking_payment(
    payment_in: PaymentBase,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.submit"])),
):
    """Payment submitted by the customer; waits for admin confirmation"""
    try:
        payment, summary = payment_service.record_payment(
            db,
            payment_in,
            customer_id=int(user_data["user_id"]),
            submitted_by_customer=True,
        )
        return ResponseWrapper.created(
            data=_payment_data(payment, summary),
            message="Payment submitted, awaiting admin confirmation",
        )
    except Exception as e:
        raise handle_route_error(db, e, "submit booking payment")


@router.delete("/{payment_id}", status_code=status.HTTP_200_OK)
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.delete"])),
):
    try:
        summary = payment_service.delete_payment(db, payment_id)
        logger.info(f"Payment {payment_id} deleted by user {user_data['user_id']}")
        return ResponseWrapper.success(data=summary, message="Payment deleted successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"delete payment {payment_id}")
