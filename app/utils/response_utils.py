import re
from typing import Any, Dict, List, Optional, TypeVar
from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from app.core.exceptions import DomainError
from app.schemas.base import (
    create_success_response,
    create_error_response,
    create_paginated_response
)
from app.core.logging_config import get_logger

logger = get_logger(__name__)
T = TypeVar("T", bound=BaseModel)

MAX_PAGE_SIZE = 100


class ResponseWrapper:
    """Utility class for wrapping responses in standard format"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        return create_success_response(jsonable_encoder(data), message)

    @staticmethod
    def error(
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Wrap error response and make it JSON-safe"""
        raw = create_error_response(message, error_code, details)
        return jsonable_encoder(raw)

    @staticmethod
    def paginated(
        items: List[Any],
        total: int,
        page: int = 1,
        per_page: int = 10,
        message: str = "Success"
    ) -> Dict[str, Any]:
        return create_paginated_response(jsonable_encoder(items), total, page, per_page, message)

    @staticmethod
    def created(data: Any = None, message: str = "Resource created successfully") -> Dict[str, Any]:
        return create_success_response(jsonable_encoder(data), message)

    @staticmethod
    def updated(data: Any = None, message: str = "Resource updated successfully") -> Dict[str, Any]:
        return create_success_response(jsonable_encoder(data), message)

    @staticmethod
    def deleted(message: str = "Resource deleted successfully") -> Dict[str, Any]:
        return create_success_response(None, message)


def _constraint_fields(error_msg: str) -> Dict[str, str]:
    match = re.search(r"Key \((.*?)\)=\((.*?)\)", error_msg)
    if not match:
        return {}
    columns = match.group(1).split(", ")
    values = match.group(2).split(", ")
    return {col: val for col, val in zip(columns, values)}


def handle_db_error(error: Exception) -> HTTPException:
    """Convert database errors to HTTP exceptions with detailed info"""
    error_msg = str(error).strip().replace("\n", " ")
    lowered = error_msg.lower()

    if "duplicate key" in lowered or "unique constraint" in lowered:
        detail = ResponseWrapper.error(
            message="Resource already exists with the same values",
            error_code="DUPLICATE_RESOURCE",
            details={"db_error": error_msg, "conflicting_fields": _constraint_fields(error_msg)},
        )
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    elif "foreign key" in lowered:
        detail = ResponseWrapper.error(
            message="Referenced resource not found",
            error_code="FOREIGN_KEY_VIOLATION",
            details={"db_error": error_msg, "conflicting_fields": _constraint_fields(error_msg)},
        )
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

    detail = ResponseWrapper.error(
        message="Database operation failed",
        error_code="DATABASE_ERROR",
        details={"db_error": error_msg},
    )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def handle_http_error(error: Exception) -> HTTPException:
    """Convert HTTP and generic exceptions into structured ResponseWrapper format"""
    if isinstance(error, HTTPException):
        detail = getattr(error, "detail", str(error))
        if isinstance(detail, dict) and detail.get("success") is not None:
            return error

        detail = ResponseWrapper.error(
            message=str(detail),
            error_code="HTTP_ERROR",
            details={"original_error": detail},
        )
        return HTTPException(status_code=error.status_code, detail=detail)

    logger.exception(f"Unexpected HTTP error: {error}")
    detail = ResponseWrapper.error(
        message="Unexpected server error",
        error_code="INTERNAL_SERVER_ERROR",
        details={"original_error": str(error)},
    )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def handle_domain_error(error: DomainError) -> HTTPException:
    """Map a service-layer DomainError onto its HTTP status and error envelope"""
    logger.warning(f"{error.error_code}: {error.message}")
    detail = ResponseWrapper.error(
        message=error.message,
        error_code=error.error_code,
        details=error.details,
    )
    headers = None
    if error.details and "retry_after" in error.details:
        headers = {"Retry-After": str(error.details["retry_after"])}
    return HTTPException(status_code=error.status_code, detail=detail, headers=headers)


def handle_stale_data_error(error: Exception) -> HTTPException:
    """A concurrent writer bumped the row version first"""
    logger.warning(f"Concurrent modification detected: {error}")
    detail = ResponseWrapper.error(
        message="The record was modified by another request, please retry",
        error_code="CONCURRENT_MODIFICATION",
    )
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


def internal_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=ResponseWrapper.error("Internal Server Error", "INTERNAL_ERROR"),
    )


def validate_pagination_params(page: int, page_size: int) -> tuple[int, int, int]:
    """Normalize page/pageSize and return (page, per_page, skip)"""
    if page < 1:
        page = 1
    if page_size <= 0:
        page_size = 10
    page_size = min(page_size, MAX_PAGE_SIZE)

    skip = (page - 1) * page_size
    return page, page_size, skip


def handle_route_error(db, error: Exception, action: str) -> HTTPException:
    """
    Roll back the request's session and translate any exception raised in a
    route into the standard error envelope.
    """
    db.rollback()
    if isinstance(error, DomainError):
        return handle_domain_error(error)
    if isinstance(error, HTTPException):
        return handle_http_error(error)
    if isinstance(error, StaleDataError):
        return handle_stale_data_error(error)
    if isinstance(error, SQLAlchemyError):
        logger.exception(f"Database error while trying to {action}: {error}")
        return handle_db_error(error)
    logger.exception(f"Unexpected error while trying to {action}: {error}")
    return internal_error()
