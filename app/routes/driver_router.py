from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.crud.users import driver_crud
from app.database.session import get_db
from app.schemas.driver import DriverCreate, DriverUpdate, DriverResponse
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/drivers", tags=["drivers"])


def _get_driver_or_404(db: Session, driver_id: int):
    driver = driver_crud.get(db, id=driver_id)
    if not driver:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ResponseWrapper.error(f"Driver {driver_id} not found", "DRIVER_NOT_FOUND"),
        )
    return driver


@router.get("/", status_code=status.HTTP_200_OK)
def list_drivers(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = None,
    active_only: Optional[bool] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["driver.read"])),
):
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = driver_crud.search(db, search=search, active_only=active_only)
        total, items = paginate_query(query, skip, per_page)
        return ResponseWrapper.paginated(
            items=[DriverResponse.model_validate(d) for d in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Drivers fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list drivers")


@router.get("/{driver_id}", status_code=status.HTTP_200_OK)
def get_driver(
    driver_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["driver.read"])),
):
    try:
        driver = _get_driver_or_404(db, driver_id)
        return ResponseWrapper.success(data=DriverResponse.model_validate(driver))
    except Exception as e:
        raise handle_route_error(db, e, f"fetch driver {driver_id}")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_driver(
    driver_in: DriverCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["driver.create"])),
):
    try:
        if driver_crud.get_by_email_or_username(db, email=driver_in.email, username=driver_in.username):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=ResponseWrapper.error(
                    "A driver with this email or username already exists",
                    "DUPLICATE_RESOURCE",
                ),
            )
        driver = driver_crud.create(db, obj_in=driver_in)
        db.commit()
        db.refresh(driver)
        logger.info(f"Driver {driver.driver_id} created by user {user_data['user_id']}")
        return ResponseWrapper.created(data=DriverResponse.model_validate(driver), message="Driver created successfully")
    except Exception as e:
        raise handle_route_error(db, e, "create driver")


@router.put("/{driver_id}", status_code=status.HTTP_200_OK)
def update_driver(
    driver_id: int,
    driver_in: DriverUpdate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["driver.update"])),
):
    try:
        driver = _get_driver_or_404(db, driver_id)
        driver = driver_crud.update(db, db_obj=driver, obj_in=driver_in)
        db.commit()
        db.refresh(driver)
        logger.info(f"Driver {driver_id} updated by user {user_data['user_id']}")
        return ResponseWrapper.updated(data=DriverResponse.model_validate(driver), message="Driver updated successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"update driver {driver_id}")


@router.delete("/{driver_id}", status_code=status.HTTP_200_OK)
def deactivate_driver(
    driver_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["driver.delete"])),
):
    try:
        driver = _get_driver_or_404(db, driver_id)
        driver_crud.update(db, db_obj=driver, obj_in={"is_active": False})
        db.commit()
        logger.info(f"Driver {driver_id} deactivated by user {user_data['user_id']}")
        return ResponseWrapper.deleted(message="Driver deactivated successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"deactivate driver {driver_id}")
