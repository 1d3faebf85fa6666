from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database.session import get_db
from app.schemas.waitlist import WaitlistCreate, WaitlistResponse
from app.services import waitlist_service
from app.utils.response_utils import ResponseWrapper, handle_route_error
from common_utils.auth.permission_checker import PermissionChecker
from common_utils.auth.utils import customer_scope
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/waitlist", tags=["waitlist"])


def _entry_data(entry) -> dict:
    return WaitlistResponse.model_validate(entry).model_dump(mode="json")


@router.post("/", status_code=status.HTTP_201_CREATED)
def join_waitlist(
    waitlist_in: WaitlistCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["waitlist.join"])),
):
    """Queue for a car that is booked or under maintenance"""
    try:
        entry = waitlist_service.join_waitlist(db, int(user_data["user_id"]), waitlist_in)
        return ResponseWrapper.created(
            data=_entry_data(entry),
            message=f"Added to the waitlist at position #{entry.position}",
        )
    except Exception as e:
        raise handle_route_error(db, e, "join waitlist")


@router.get("/me", status_code=status.HTTP_200_OK)
def list_my_waitlist(
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["waitlist.read_own"])),
):
    try:
        entries = waitlist_service.list_for_customer(db, int(user_data["user_id"]))
        return ResponseWrapper.success(
            data=[_entry_data(e) for e in entries], message="Waitlist entries fetched successfully"
        )
    except Exception as e:
        raise handle_route_error(db, e, "list customer waitlist")


@router.get("/cars/{car_id}", status_code=status.HTTP_200_OK)
def list_car_waitlist(
    car_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["waitlist.read"])),
):
    try:
        entries = waitlist_service.list_for_car(db, car_id)
        return ResponseWrapper.success(
            data=[_entry_data(e) for e in entries], message="Waitlist fetched successfully"
        )
    except Exception as e:
        raise handle_route_error(db, e, f"list waitlist of car {car_id}")


@router.delete("/{waitlist_id}", status_code=status.HTTP_200_OK)
def leave_waitlist(
    waitlist_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["waitlist.leave", "waitlist.manage"])),
):
    try:
        entry = waitlist_service.leave_waitlist(db, waitlist_id, customer_scope(user_data))
        logger.info(f"Waitlist entry {waitlist_id} removed by user {user_data['user_id']}")
        return ResponseWrapper.updated(data=_entry_data(entry), message="Removed from the waitlist")
    except Exception as e:
        raise handle_route_error(db, e, f"leave waitlist entry {waitlist_id}")
