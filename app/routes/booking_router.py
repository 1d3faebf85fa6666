from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.core.email_service import EmailService, get_email_service
from app.crud.booking import booking_crud
from app.database.session import get_db
from app.models.booking import BookingStatusEnum
from app.schemas.booking import (
    AutoCancelResult,
    BookingCreate,
    ExtensionRequest,
    ExtensionResponse,
    GroupBookingCreate,
    RejectionRequest,
    serialize_booking,
)
from app.services import booking_workflow
from app.services.auto_cancel import auto_cancel_expired
from app.services.payment_service import confirm_payment
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from common_utils.auth.utils import customer_scope
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"])


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get("/", status_code=status.HTTP_200_OK)
def list_bookings(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    booking_status: Optional[BookingStatusEnum] = Query(None, alias="status"),
    customer_id: Optional[int] = None,
    search: Optional[str] = Query(None, max_length=100),
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.read"])),
):
    """List all bookings with balance, newest first"""
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = booking_crud.search(db, customer_id=customer_id, status=booking_status, search=search)
        total, items = paginate_query(query, skip, per_page)
        logger.info(f"Listed {len(items)}/{total} bookings for user {user_data['user_id']}")
        return ResponseWrapper.paginated(
            items=[serialize_booking(b) for b in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Bookings fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list bookings")


@router.get("/my-bookings", status_code=status.HTTP_200_OK)
def list_my_bookings(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    booking_status: Optional[BookingStatusEnum] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.read_own"])),
):
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = booking_crud.search(db, customer_id=int(user_data["user_id"]), status=booking_status)
        total, items = paginate_query(query, skip, per_page)
        return ResponseWrapper.paginated(
            items=[serialize_booking(b) for b in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Bookings fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list customer bookings")


@router.post("/auto-cancel/trigger", status_code=status.HTTP_200_OK)
def trigger_auto_cancel(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    user_data=Depends(PermissionChecker(["booking.auto_cancel"])),
):
    """Cancel expired extension requests and lapsed unpaid bookings"""
    try:
        logger.info(f"Auto-cancel sweep triggered by user {user_data['user_id']}")
        result = AutoCancelResult(**auto_cancel_expired(db, email_service=email_service))
        return ResponseWrapper.success(data=result.model_dump(), message="Auto-cancel sweep completed")
    except Exception as e:
        raise handle_route_error(db, e, "run the auto-cancel sweep")


@router.get("/{booking_id}", status_code=status.HTTP_200_OK)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.read", "booking.read_own"])),
):
    try:
        booking = booking_workflow.get_booking(db, booking_id, customer_scope(user_data))
        return ResponseWrapper.success(data=serialize_booking(booking), message="Booking fetched successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"fetch booking {booking_id}")


@router.get("/{booking_id}/extensions", status_code=status.HTTP_200_OK)
def list_booking_extensions(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.read", "booking.read_own"])),
):
    try:
        extensions = booking_workflow.list_extensions(db, booking_id, customer_scope(user_data))
        return ResponseWrapper.success(
            data=[ExtensionResponse.model_validate(e).model_dump(mode="json") for e in extensions],
            message="Extension history fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, f"fetch extensions of booking {booking_id}")


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def _booking_owner(user_data: dict, requested_customer_id: Optional[int]) -> Optional[int]:
    scope = customer_scope(user_data)
    return scope if scope is not None else requested_customer_id


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_in: BookingCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.create"])),
):
    try:
        customer_id = _booking_owner(user_data, booking_in.customer_id)
        booking = booking_workflow.create_booking(db, customer_id, booking_in)
        return ResponseWrapper.created(data=serialize_booking(booking), message="Booking created successfully")
    except Exception as e:
        raise handle_route_error(db, e, "create booking")


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def create_group_booking(
    group_in: GroupBookingCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.create"])),
):
    """Book several cars at once; all bookings share one booking_group_id"""
    try:
        customer_id = _booking_owner(user_data, group_in.customer_id)
        bookings = booking_workflow.create_group_booking(db, customer_id, group_in.bookings)
        return ResponseWrapper.created(
            data={
                "booking_group_id": bookings[0].booking_group_id,
                "bookings": [serialize_booking(b) for b in bookings],
            },
            message=f"{len(bookings)} bookings created successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "create group booking")


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

@router.put("/{booking_id}/cancel", status_code=status.HTTP_200_OK)
def request_cancellation(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.request"])),
):
    try:
        booking = booking_workflow.request_cancellation(db, booking_id, customer_scope(user_data))
        return ResponseWrapper.updated(
            data=serialize_booking(booking),
            message="Cancellation request submitted, awaiting admin approval",
        )
    except Exception as e:
        raise handle_route_error(db, e, f"request cancellation of booking {booking_id}")


@router.post("/{booking_id}/cancel-request/withdraw", status_code=status.HTTP_200_OK)
def withdraw_cancellation_request(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.request"])),
):
    try:
        booking = booking_workflow.cancel_cancellation_request(db, booking_id, customer_scope(user_data))
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Cancellation request withdrawn")
    except Exception as e:
        raise handle_route_error(db, e, f"withdraw cancellation of booking {booking_id}")


@router.put("/{booking_id}/confirm-cancellation", status_code=status.HTTP_200_OK)
def approve_cancellation(
    booking_id: int,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    user_data=Depends(PermissionChecker(["booking.approve"])),
):
    try:
        booking = booking_workflow.approve_cancellation(db, booking_id, email_service=email_service)
        logger.info(f"Cancellation of booking {booking_id} approved by user {user_data['user_id']}")
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Booking cancelled")
    except Exception as e:
        raise handle_route_error(db, e, f"approve cancellation of booking {booking_id}")


@router.put("/{booking_id}/reject-cancellation", status_code=status.HTTP_200_OK)
def reject_cancellation(
    booking_id: int,
    rejection: Optional[RejectionRequest] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.approve"])),
):
    try:
        reason = rejection.reason if rejection else None
        booking = booking_workflow.reject_cancellation(db, booking_id, reason)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Cancellation request rejected")
    except Exception as e:
        raise handle_route_error(db, e, f"reject cancellation of booking {booking_id}")


@router.put("/{booking_id}/admin-cancel", status_code=status.HTTP_200_OK)
def admin_cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    user_data=Depends(PermissionChecker(["booking.approve"])),
):
    try:
        booking = booking_workflow.admin_cancel_booking(db, booking_id, email_service=email_service)
        logger.info(f"Booking {booking_id} cancelled directly by user {user_data['user_id']}")
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Booking cancelled")
    except Exception as e:
        raise handle_route_error(db, e, f"cancel booking {booking_id}")


# ---------------------------------------------------------------------------
# Extension
# ---------------------------------------------------------------------------

@router.put("/{booking_id}/extend", status_code=status.HTTP_200_OK)
def request_extension(
    booking_id: int,
    extension_in: ExtensionRequest,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.request"])),
):
    try:
        booking = booking_workflow.request_extension(
            db, booking_id, extension_in.new_end_date, customer_scope(user_data)
        )
        return ResponseWrapper.updated(
            data=serialize_booking(booking),
            message="Extension request submitted, awaiting admin approval",
        )
    except Exception as e:
        raise handle_route_error(db, e, f"request extension of booking {booking_id}")


@router.put("/{booking_id}/confirm-extension", status_code=status.HTTP_200_OK)
def approve_extension(
    booking_id: int,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    user_data=Depends(PermissionChecker(["booking.approve"])),
):
    try:
        booking = booking_workflow.approve_extension(db, booking_id, email_service=email_service)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Extension approved")
    except Exception as e:
        raise handle_route_error(db, e, f"approve extension of booking {booking_id}")


@router.put("/{booking_id}/reject-extension", status_code=status.HTTP_200_OK)
def reject_extension(
    booking_id: int,
    rejection: Optional[RejectionRequest] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.approve"])),
):
    try:
        reason = rejection.reason if rejection else None
        booking = booking_workflow.reject_extension(db, booking_id, reason)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Extension rejected")
    except Exception as e:
        raise handle_route_error(db, e, f"reject extension of booking {booking_id}")


@router.post("/{booking_id}/cancel-extension", status_code=status.HTTP_200_OK)
def cancel_extension_request(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.request"])),
):
    try:
        booking = booking_workflow.cancel_extension_request(db, booking_id, customer_scope(user_data))
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Extension request withdrawn")
    except Exception as e:
        raise handle_route_error(db, e, f"withdraw extension of booking {booking_id}")


# ---------------------------------------------------------------------------
# Payment confirmation and vehicle hand-over
# ---------------------------------------------------------------------------

@router.put("/{booking_id}/confirm", status_code=status.HTTP_200_OK)
def confirm_booking_payment(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["payment.confirm"])),
):
    """Verify the submitted payment; a Pending booking becomes Confirmed"""
    try:
        booking = confirm_payment(db, booking_id)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Payment confirmed")
    except Exception as e:
        raise handle_route_error(db, e, f"confirm payment of booking {booking_id}")


@router.put("/{booking_id}/release", status_code=status.HTTP_200_OK)
def release_vehicle(
    booking_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["booking.release"])),
):
    try:
        booking = booking_workflow.release_vehicle(db, booking_id)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Vehicle released")
    except Exception as e:
        raise handle_route_error(db, e, f"release vehicle of booking {booking_id}")


@router.put("/{booking_id}/return", status_code=status.HTTP_200_OK)
def return_vehicle(
    booking_id: int,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    user_data=Depends(PermissionChecker(["booking.release"])),
):
    try:
        booking = booking_workflow.return_vehicle(db, booking_id, email_service=email_service)
        return ResponseWrapper.updated(data=serialize_booking(booking), message="Vehicle returned, booking completed")
    except Exception as e:
        raise handle_route_error(db, e, f"return vehicle of booking {booking_id}")
