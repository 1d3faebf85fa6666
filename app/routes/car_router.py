from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.crud.car import car_crud
from app.database.session import get_db
from app.models.car import CarStatusEnum
from app.schemas.car import CarCreate, CarUpdate, CarResponse
from app.utils.pagination import paginate_query
from app.utils.response_utils import ResponseWrapper, handle_route_error, validate_pagination_params
from common_utils.auth.permission_checker import PermissionChecker
from app.core.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/cars", tags=["cars"])


def _get_car_or_404(db: Session, car_id: int):
    car = car_crud.get(db, id=car_id)
    if not car:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ResponseWrapper.error(f"Car {car_id} not found", "CAR_NOT_FOUND"),
        )
    return car


def _ensure_plate_free(db: Session, license_plate: str, car_id: Optional[int] = None):
    existing = car_crud.get_by_plate(db, license_plate=license_plate)
    if existing and existing.car_id != car_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=ResponseWrapper.error(
                f"A car with plate {license_plate} already exists",
                "DUPLICATE_RESOURCE",
                details={"license_plate": license_plate},
            ),
        )


@router.get("/", status_code=status.HTTP_200_OK)
def list_cars(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, alias="pageSize"),
    car_status: Optional[CarStatusEnum] = Query(None, alias="status"),
    active_only: Optional[bool] = True,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["car.read"])),
):
    try:
        page, per_page, skip = validate_pagination_params(page, page_size)
        query = car_crud.search(db, status=car_status, active_only=active_only, search=search)
        total, items = paginate_query(query, skip, per_page)
        return ResponseWrapper.paginated(
            items=[CarResponse.model_validate(c) for c in items],
            total=total,
            page=page,
            per_page=per_page,
            message="Cars fetched successfully",
        )
    except Exception as e:
        raise handle_route_error(db, e, "list cars")


@router.get("/{car_id}", status_code=status.HTTP_200_OK)
def get_car(
    car_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["car.read"])),
):
    try:
        car = _get_car_or_404(db, car_id)
        return ResponseWrapper.success(data=CarResponse.model_validate(car), message="Car fetched successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"fetch car {car_id}")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_car(
    car_in: CarCreate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["car.create"])),
):
    try:
        _ensure_plate_free(db, car_in.license_plate)
        car = car_crud.create(db, obj_in=car_in)
        db.commit()
        db.refresh(car)
        logger.info(f"Car {car.car_id} ({car.license_plate}) created by user {user_data['user_id']}")
        return ResponseWrapper.created(data=CarResponse.model_validate(car), message="Car created successfully")
    except Exception as e:
        raise handle_route_error(db, e, "create car")


@router.put("/{car_id}", status_code=status.HTTP_200_OK)
def update_car(
    car_id: int,
    car_in: CarUpdate,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["car.update"])),
):
    try:
        car = _get_car_or_404(db, car_id)
        if car_in.license_plate:
            _ensure_plate_free(db, car_in.license_plate, car_id=car_id)
        car = car_crud.update(db, db_obj=car, obj_in=car_in)
        db.commit()
        db.refresh(car)
        logger.info(f"Car {car_id} updated by user {user_data['user_id']}")
        return ResponseWrapper.updated(data=CarResponse.model_validate(car), message="Car updated successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"update car {car_id}")


@router.delete("/{car_id}", status_code=status.HTTP_200_OK)
def deactivate_car(
    car_id: int,
    db: Session = Depends(get_db),
    user_data=Depends(PermissionChecker(["car.delete"])),
):
    """Cars keep their booking history, so delete only deactivates them"""
    try:
        car = _get_car_or_404(db, car_id)
        car_crud.update(db, db_obj=car, obj_in={"is_active": False})
        db.commit()
        logger.info(f"Car {car_id} deactivated by user {user_data['user_id']}")
        return ResponseWrapper.deleted(message="Car deactivated successfully")
    except Exception as e:
        raise handle_route_error(db, e, f"deactivate car {car_id}")
