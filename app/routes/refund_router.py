from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database.session import get_db
from app.models.refund import Refund
from app.schemas.refund import RefundCreate, RefundResponse
from app.services import payment_service
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/refunds", tags=["refunds"])


@router.get("/", status_code=status.HTTP_200_OK)
def list_refunds(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    booking_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["refund.read"])),
):
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = db.query(Refund)
        if booking_id is not None:
            query = query.filter(Refund.booking_id == booking_id)
        query = query.order_by(Refund.refund_date.desc(), Refund.refund_id.desc())
        total, items = paginate_query(query, skip, per_page)
        return ResponseWrapper.paginated(
            items=[RefundResponse.model_validate(r).model_dump(mode="json") for r in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Refunds fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list refunds")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_refund(
    refund_in: RefundCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["refund.create"])),
):
    try:
        refund, summary = payment_service.record_refund(db, refund_in)
        logger.info(f"Refund {refund.refund_id} recorded by user {user_data['user_id']}")
        data = RefundResponse.model_validate(refund).model_copy(update={
            "balance": summary["balance"],
            "payment_status": summary["payment_status"],
        })
        return ResponseWrapper.created(data=data.model_dump(mode="json"), message="Refund recorded successfully")
    except Exception as e:
        raise handle_route_error(db, e, "record refund")
