"""
Tests for error translation and the response envelope.
"""
from unittest.mock import Mock

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import NotFoundError, RateLimitedError
from app.utils.response_utils import (
    ResponseWrapper,
    handle_route_error,
    validate_pagination_params,
)


class TestHandleRouteError:
    def test_domain_error_keeps_status_and_code(self):
        db = Mock()
        exc = handle_route_error(db, NotFoundError("gone", error_code="BOOKING_NOT_FOUND"), "fetch")

        db.rollback.assert_called_once()
        assert exc.status_code == 404
        assert exc.detail["success"] is False
        assert exc.detail["error_code"] == "BOOKING_NOT_FOUND"

    def test_rate_limit_sets_retry_after_header(self):
        exc = handle_route_error(Mock(), RateLimitedError("slow down", details={"retry_after": 120}), "issue")
        assert exc.status_code == 429
        assert exc.headers == {"Retry-After": "120"}

    def test_stale_row_is_conflict(self):
        exc = handle_route_error(Mock(), StaleDataError("version mismatch"), "update")
        assert exc.status_code == 409
        assert exc.detail["error_code"] == "CONCURRENT_MODIFICATION"

    def test_unique_violation_is_duplicate(self):
        error = IntegrityError(
            "INSERT", {}, Exception('duplicate key value violates unique constraint "cars_license_plate_key" '
                                    "DETAIL: Key (license_plate)=(NAB-1234) already exists.")
        )
        exc = handle_route_error(Mock(), error, "create car")
        assert exc.status_code == 409
        assert exc.detail["details"]["conflicting_fields"] == {"license_plate": "NAB-1234"}

    def test_wrapped_http_exception_passes_through(self):
        original = HTTPException(status_code=403, detail=ResponseWrapper.error("no", "FORBIDDEN"))
        assert handle_route_error(Mock(), original, "read") is original

    def test_plain_http_exception_is_wrapped(self):
        exc = handle_route_error(Mock(), HTTPException(status_code=400, detail="bad"), "read")
        assert exc.detail["error_code"] == "HTTP_ERROR"

    def test_unexpected_error_is_internal(self):
        exc = handle_route_error(Mock(), RuntimeError("boom"), "read")
        assert exc.status_code == 500
        assert exc.detail["error_code"] == "INTERNAL_ERROR"


def test_pagination_params_are_clamped():
    assert validate_pagination_params(0, 0) == (1, 10, 0)
    assert validate_pagination_params(3, 500) == (3, 100, 200)
