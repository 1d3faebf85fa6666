"""
Service-level tests for the booking lifecycle.

Workflow functions are called directly with an explicit ``now`` so the
booking dates can be fixed.
"""
from datetime import date, datetime

import pytest
from sqlalchemy import text
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import (
    AlreadyPendingError,
    ForbiddenError,
    InvalidDateError,
    InvalidStateError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from app.models import (
    Booking,
    BookingStatusEnum,
    CarStatusEnum,
    ExtensionStatusEnum,
    PaymentMethodEnum,
    Transaction,
)
from app.schemas.booking import BookingBase
from app.schemas.payment import PaymentBase
from app.services import booking_workflow, payment_service

NOW = datetime(2025, 1, 1, 8, 0)


def booking_input(car, start=date(2025, 1, 10), end=date(2025, 1, 15), **fields):
    return BookingBase(car_id=car.car_id, start_date=start, end_date=end, **fields)


@pytest.fixture
def booking(test_db, test_customer, test_car):
    """Pending booking 2025-01-10 .. 2025-01-15 on a 1000/day car"""
    return booking_workflow.create_booking(test_db, test_customer.customer_id, booking_input(test_car), now=NOW)


@pytest.fixture
def in_progress_booking(test_db, test_customer, booking):
    payment_service.record_payment(
        test_db,
        PaymentBase(booking_id=booking.booking_id, amount=5000, payment_method=PaymentMethodEnum.CASH),
        customer_id=test_customer.customer_id,
        submitted_by_customer=True,
        now=NOW,
    )
    payment_service.confirm_payment(test_db, booking.booking_id)
    return booking_workflow.release_vehicle(test_db, booking.booking_id)


class TestCreateBooking:
    def test_total_is_days_times_rate(self, booking, test_car):
        assert booking.total_amount == 5000.0
        assert booking.booking_status == BookingStatusEnum.PENDING
        assert booking.booking_date == NOW
        assert booking.is_cancel is False
        assert booking.is_extend is False
        assert booking.is_pay is False

    def test_end_before_start_rejected(self, test_db, test_customer, test_car):
        with pytest.raises(InvalidDateError):
            booking_workflow.create_booking(
                test_db,
                test_customer.customer_id,
                booking_input(test_car, start=date(2025, 1, 15), end=date(2025, 1, 10)),
                now=NOW,
            )

    def test_start_in_past_rejected(self, test_db, test_customer, test_car):
        with pytest.raises(InvalidDateError):
            booking_workflow.create_booking(
                test_db,
                test_customer.customer_id,
                booking_input(test_car, start=date(2024, 12, 30), end=date(2025, 1, 2)),
                now=NOW,
            )

    def test_overlapping_dates_rejected(self, test_db, test_customer, test_car, booking):
        with pytest.raises(StateConflictError) as exc_info:
            booking_workflow.create_booking(
                test_db,
                test_customer.customer_id,
                booking_input(test_car, start=date(2025, 1, 14), end=date(2025, 1, 18)),
                now=NOW,
            )
        assert exc_info.value.error_code == "CAR_UNAVAILABLE"
        assert exc_info.value.details["conflicts"]

    def test_maintenance_day_after_booking_is_blocked(self, test_db, test_customer, test_car, booking):
        with pytest.raises(StateConflictError):
            booking_workflow.create_booking(
                test_db,
                test_customer.customer_id,
                booking_input(test_car, start=date(2025, 1, 16), end=date(2025, 1, 18)),
                now=NOW,
            )

    def test_cancelled_booking_frees_dates(self, test_db, test_customer, test_car, booking):
        booking_workflow.admin_cancel_booking(test_db, booking.booking_id, now=NOW)
        again = booking_workflow.create_booking(test_db, test_customer.customer_id, booking_input(test_car), now=NOW)
        assert again.booking_id != booking.booking_id

    def test_car_in_maintenance_rejected(self, test_db, test_customer, test_car):
        test_car.car_status = CarStatusEnum.MAINTENANCE
        test_db.commit()
        with pytest.raises(StateConflictError):
            booking_workflow.create_booking(test_db, test_customer.customer_id, booking_input(test_car), now=NOW)

    def test_unknown_car(self, test_db, test_customer, test_car):
        data = BookingBase(car_id=999, start_date=date(2025, 1, 10), end_date=date(2025, 1, 15))
        with pytest.raises(NotFoundError) as exc_info:
            booking_workflow.create_booking(test_db, test_customer.customer_id, data, now=NOW)
        assert exc_info.value.error_code == "CAR_NOT_FOUND"

    def test_delivery_requires_location(self, test_db, test_customer, test_car):
        with pytest.raises(ValidationError):
            booking_workflow.create_booking(
                test_db, test_customer.customer_id, booking_input(test_car, is_deliver=True), now=NOW
            )

    def test_flags_normalized_at_boundary(self):
        data = BookingBase.model_validate({
            "car_id": 1,
            "start_date": "2025-01-10",
            "end_date": "2025-01-15",
            "is_deliver": "TRUE",
            "is_self_driver": "false",
        })
        assert data.is_deliver is True
        assert data.is_self_driver is False


class TestGroupBooking:
    def test_bookings_share_group_id(self, test_db, test_customer, test_car, second_car):
        bookings = booking_workflow.create_group_booking(
            test_db,
            test_customer.customer_id,
            [booking_input(test_car), booking_input(second_car)],
            now=NOW,
        )
        assert len(bookings) == 2
        assert bookings[0].booking_group_id
        assert bookings[0].booking_group_id == bookings[1].booking_group_id
        assert [b.total_amount for b in bookings] == [5000.0, 12500.0]

    def test_one_conflict_creates_nothing(self, test_db, test_customer, test_car, second_car):
        with pytest.raises(StateConflictError):
            booking_workflow.create_group_booking(
                test_db,
                test_customer.customer_id,
                [booking_input(second_car), booking_input(test_car), booking_input(test_car)],
                now=NOW,
            )
        test_db.rollback()
        assert test_db.query(Booking).count() == 0


class TestCancellation:
    def test_second_request_is_already_pending(self, test_db, booking):
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        with pytest.raises(AlreadyPendingError):
            booking_workflow.request_cancellation(test_db, booking.booking_id)

    def test_other_customer_cannot_request(self, test_db, booking, second_customer):
        with pytest.raises(ForbiddenError):
            booking_workflow.request_cancellation(test_db, booking.booking_id, second_customer.customer_id)

    def test_approve_cancels_and_records_transaction(self, test_db, booking, email_service):
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        cancelled = booking_workflow.approve_cancellation(
            test_db, booking.booking_id, now=NOW, email_service=email_service
        )

        assert cancelled.booking_status == BookingStatusEnum.CANCELLED
        assert cancelled.is_cancel is False
        transaction = test_db.query(Transaction).filter_by(booking_id=booking.booking_id).one()
        assert transaction.cancellation_date == NOW
        email_service.send_booking_notice_email.assert_called_once()

    def test_failed_notice_keeps_cancellation(self, test_db, booking, email_service):
        email_service.send_booking_notice_email.return_value = False
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        cancelled = booking_workflow.approve_cancellation(
            test_db, booking.booking_id, now=NOW, email_service=email_service
        )
        assert cancelled.booking_status == BookingStatusEnum.CANCELLED

    def test_reject_clears_flag(self, test_db, booking):
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        rejected = booking_workflow.reject_cancellation(test_db, booking.booking_id, "Too late")
        assert rejected.is_cancel is False
        assert rejected.booking_status == BookingStatusEnum.PENDING

    def test_pending_cancellation_keeps_dates_reserved(self, test_db, test_car, second_customer, booking):
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        with pytest.raises(StateConflictError) as exc_info:
            booking_workflow.create_booking(
                test_db, second_customer.customer_id, booking_input(test_car), now=NOW
            )
        assert exc_info.value.error_code == "CAR_UNAVAILABLE"

        test_db.rollback()
        rejected = booking_workflow.reject_cancellation(test_db, booking.booking_id, "Keep the booking")
        assert rejected.booking_status == BookingStatusEnum.PENDING
        assert test_db.query(Booking).filter_by(car_id=test_car.car_id).count() == 1

    def test_withdraw_without_request(self, test_db, booking):
        with pytest.raises(StateConflictError):
            booking_workflow.cancel_cancellation_request(test_db, booking.booking_id)

    def test_release_blocked_while_cancellation_pending(self, test_db, booking):
        booking.booking_status = BookingStatusEnum.CONFIRMED
        test_db.commit()
        booking_workflow.request_cancellation(test_db, booking.booking_id)
        with pytest.raises(InvalidStateError):
            booking_workflow.release_vehicle(test_db, booking.booking_id)

    def test_admin_cancel_completed_booking_rejected(self, test_db, booking):
        booking.booking_status = BookingStatusEnum.COMPLETED
        test_db.commit()
        with pytest.raises(InvalidStateError):
            booking_workflow.admin_cancel_booking(test_db, booking.booking_id, now=NOW)


class TestExtension:
    def test_extension_priced_and_approved(self, test_db, in_progress_booking, email_service):
        booking_id = in_progress_booking.booking_id
        requested = booking_workflow.request_extension(
            test_db, booking_id, date(2025, 1, 20), now=datetime(2025, 1, 14, 10, 0)
        )
        assert requested.is_extend is True
        assert requested.new_end_date == date(2025, 1, 20)
        assert requested.extension_payment_deadline == datetime(2025, 1, 15, 10, 0)
        assert requested.end_date == date(2025, 1, 15)

        extension = booking_workflow.list_extensions(test_db, booking_id)[0]
        assert extension.additional_days == 5
        assert extension.additional_cost == 5 * 1000.0

        approved = booking_workflow.approve_extension(
            test_db, booking_id, now=datetime(2025, 1, 14, 12, 0), email_service=email_service
        )
        assert approved.end_date == date(2025, 1, 20)
        assert approved.total_amount == 10000.0
        assert approved.is_extend is False
        assert approved.new_end_date is None
        assert extension.extension_status == ExtensionStatusEnum.APPROVED
        email_service.send_booking_notice_email.assert_called_once()

    def test_request_then_withdraw_restores_booking(self, test_db, in_progress_booking):
        booking_id = in_progress_booking.booking_id
        before = (in_progress_booking.end_date, in_progress_booking.total_amount)

        booking_workflow.request_extension(test_db, booking_id, date(2025, 1, 20), now=NOW)
        withdrawn = booking_workflow.cancel_extension_request(test_db, booking_id)

        assert (withdrawn.end_date, withdrawn.total_amount) == before
        assert withdrawn.is_extend is False
        assert withdrawn.extension_payment_deadline is None
        assert booking_workflow.list_extensions(test_db, booking_id)[0].extension_status == ExtensionStatusEnum.CANCELLED

    def test_second_extension_request_is_already_pending(self, test_db, in_progress_booking):
        booking_workflow.request_extension(test_db, in_progress_booking.booking_id, date(2025, 1, 20), now=NOW)
        with pytest.raises(AlreadyPendingError):
            booking_workflow.request_extension(test_db, in_progress_booking.booking_id, date(2025, 1, 22), now=NOW)

    def test_extension_into_next_booking_rejected(self, test_db, test_car, second_customer, in_progress_booking):
        booking_workflow.create_booking(
            test_db,
            second_customer.customer_id,
            booking_input(test_car, start=date(2025, 1, 18), end=date(2025, 1, 20)),
            now=NOW,
        )
        with pytest.raises(StateConflictError):
            booking_workflow.request_extension(test_db, in_progress_booking.booking_id, date(2025, 1, 19), now=NOW)

    def test_staged_extension_dates_are_reserved(self, test_db, test_car, second_customer, in_progress_booking):
        booking_workflow.request_extension(test_db, in_progress_booking.booking_id, date(2025, 1, 20), now=NOW)
        with pytest.raises(StateConflictError):
            booking_workflow.create_booking(
                test_db,
                second_customer.customer_id,
                booking_input(test_car, start=date(2025, 1, 18), end=date(2025, 1, 19)),
                now=NOW,
            )

    def test_approve_rejected_when_dates_taken(
        self, test_db, second_customer, make_booking, in_progress_booking
    ):
        booking_id = in_progress_booking.booking_id
        booking_workflow.request_extension(test_db, booking_id, date(2025, 1, 20), now=NOW)
        make_booking(start_in_days=17, days=1, customer=second_customer, booked_at=NOW)

        with pytest.raises(StateConflictError) as exc_info:
            booking_workflow.approve_extension(test_db, booking_id, now=NOW)
        assert exc_info.value.error_code == "CAR_UNAVAILABLE"

        test_db.rollback()
        unchanged = booking_workflow.get_booking(test_db, booking_id)
        assert unchanged.end_date == date(2025, 1, 15)
        assert unchanged.is_extend is True
        assert booking_workflow.list_extensions(test_db, booking_id)[0].extension_status == ExtensionStatusEnum.PENDING

    def test_pending_booking_cannot_extend(self, test_db, booking):
        with pytest.raises(InvalidStateError):
            booking_workflow.request_extension(test_db, booking.booking_id, date(2025, 1, 20), now=NOW)

    def test_reject_records_reason(self, test_db, in_progress_booking):
        booking_id = in_progress_booking.booking_id
        booking_workflow.request_extension(test_db, booking_id, date(2025, 1, 20), now=NOW)
        rejected = booking_workflow.reject_extension(test_db, booking_id, "Car needed elsewhere")

        assert rejected.is_extend is False
        assert rejected.end_date == date(2025, 1, 15)
        extension = booking_workflow.list_extensions(test_db, booking_id)[0]
        assert extension.extension_status == ExtensionStatusEnum.REJECTED
        assert extension.rejection_reason == "Car needed elsewhere"

    def test_cancel_and_extend_never_coexist(self, test_db, in_progress_booking):
        booking_id = in_progress_booking.booking_id
        booking_workflow.request_extension(test_db, booking_id, date(2025, 1, 20), now=NOW)
        with pytest.raises(InvalidStateError):
            booking_workflow.request_cancellation(test_db, booking_id)
        refreshed = booking_workflow.get_booking(test_db, booking_id)
        assert not (refreshed.is_cancel and refreshed.is_extend)


class TestHandOver:
    def test_release_marks_car_rented(self, in_progress_booking):
        assert in_progress_booking.booking_status == BookingStatusEnum.IN_PROGRESS
        assert in_progress_booking.is_release is True
        assert in_progress_booking.car.car_status == CarStatusEnum.RENTED

    def test_release_requires_confirmation(self, test_db, booking):
        with pytest.raises(InvalidStateError):
            booking_workflow.release_vehicle(test_db, booking.booking_id)

    def test_return_completes_booking(self, test_db, in_progress_booking):
        returned = booking_workflow.return_vehicle(test_db, in_progress_booking.booking_id, now=NOW)
        assert returned.booking_status == BookingStatusEnum.COMPLETED
        assert returned.is_returned is True
        assert returned.car.car_status == CarStatusEnum.AVAILABLE
        transaction = test_db.query(Transaction).filter_by(booking_id=returned.booking_id).one()
        assert transaction.completion_date == NOW

    def test_return_auto_cancels_pending_extension(self, test_db, in_progress_booking):
        booking_id = in_progress_booking.booking_id
        booking_workflow.request_extension(test_db, booking_id, date(2025, 1, 20), now=NOW)

        returned = booking_workflow.return_vehicle(test_db, booking_id, now=NOW)

        assert returned.end_date == date(2025, 1, 15)
        assert returned.total_amount == 5000.0
        assert returned.is_extend is False
        extension = booking_workflow.list_extensions(test_db, booking_id)[0]
        assert extension.extension_status == ExtensionStatusEnum.AUTO_CANCELLED


class TestConcurrency:
    def test_stale_version_rejected(self, test_db, booking):
        test_db.execute(
            text("UPDATE bookings SET version_id = version_id + 1 WHERE booking_id = :id"),
            {"id": booking.booking_id},
        )
        booking.is_cancel = True
        with pytest.raises(StaleDataError):
            test_db.flush()
        test_db.rollback()
