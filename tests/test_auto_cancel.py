"""
Tests for the expiry sweep.
"""
from datetime import datetime, timedelta

import pytest

from app.models import (
    Booking,
    BookingStatusEnum,
    Extension,
    ExtensionStatusEnum,
    PaymentMethodEnum,
    Transaction,
)
from app.schemas.payment import PaymentBase
from app.services import payment_service
from app.services.auto_cancel import auto_cancel_expired

NOW = datetime(2025, 3, 1, 12, 0)


@pytest.fixture
def extension_pending(test_db, make_booking):
    booking = make_booking(
        start_in_days=-3,
        days=5,
        status=BookingStatusEnum.IN_PROGRESS,
        booked_at=NOW - timedelta(days=5),
        is_release=True,
    )
    booking.is_extend = True
    booking.new_end_date = booking.end_date + timedelta(days=2)
    booking.extension_payment_deadline = NOW - timedelta(minutes=1)
    test_db.add(Extension(
        booking_id=booking.booking_id,
        old_end_date=booking.end_date,
        new_end_date=booking.new_end_date,
        additional_days=2,
        additional_cost=2000.0,
        extension_status=ExtensionStatusEnum.PENDING,
        requested_at=NOW - timedelta(days=1, minutes=1),
    ))
    test_db.commit()
    return booking


class TestExpiredExtensions:
    def test_expired_extension_auto_cancelled(self, test_db, extension_pending):
        end_date = extension_pending.end_date
        total = extension_pending.total_amount

        result = auto_cancel_expired(test_db, now=NOW)

        assert result["expired_extensions"] == [extension_pending.booking_id]
        assert extension_pending.is_extend is False
        assert extension_pending.new_end_date is None
        assert extension_pending.extension_payment_deadline is None
        assert extension_pending.end_date == end_date
        assert extension_pending.total_amount == total
        assert extension_pending.booking_status == BookingStatusEnum.IN_PROGRESS

        extension = test_db.query(Extension).filter_by(booking_id=extension_pending.booking_id).one()
        assert extension.extension_status == ExtensionStatusEnum.AUTO_CANCELLED

    def test_extension_within_deadline_untouched(self, test_db, extension_pending):
        result = auto_cancel_expired(test_db, now=NOW - timedelta(hours=1))
        assert result["expired_extensions"] == []
        assert extension_pending.is_extend is True


class TestUnpaidBookings:
    def test_lapsed_unpaid_booking_cancelled(self, test_db, make_booking):
        booking = make_booking(start_in_days=10, booked_at=NOW - timedelta(hours=73))

        result = auto_cancel_expired(test_db, now=NOW)

        assert result["cancelled_bookings"] == [booking.booking_id]
        assert booking.booking_status == BookingStatusEnum.CANCELLED
        assert test_db.query(Transaction).filter_by(booking_id=booking.booking_id).one().cancellation_date == NOW
        # Never deleted
        assert test_db.query(Booking).count() == 1

    def test_unpaid_booking_inside_window_kept(self, test_db, make_booking):
        booking = make_booking(start_in_days=10, booked_at=NOW - timedelta(hours=71))
        result = auto_cancel_expired(test_db, now=NOW)
        assert result["cancelled_bookings"] == []
        assert booking.booking_status == BookingStatusEnum.PENDING

    def test_same_day_booking_lapses_after_an_hour(self, test_db, make_booking):
        booking = make_booking(start_in_days=0, booked_at=NOW - timedelta(minutes=61))
        result = auto_cancel_expired(test_db, now=NOW)
        assert result["cancelled_bookings"] == [booking.booking_id]

    def test_partly_paid_booking_kept(self, test_db, make_booking):
        booking = make_booking(start_in_days=10, booked_at=NOW - timedelta(hours=80))
        payment_service.record_payment(
            test_db,
            PaymentBase(booking_id=booking.booking_id, amount=100, payment_method=PaymentMethodEnum.CASH),
            now=NOW - timedelta(hours=79),
        )

        result = auto_cancel_expired(test_db, now=NOW)

        assert result["cancelled_bookings"] == []
        assert booking.booking_status == BookingStatusEnum.PENDING

    def test_confirmed_booking_kept(self, test_db, make_booking):
        make_booking(start_in_days=10, status=BookingStatusEnum.CONFIRMED, booked_at=NOW - timedelta(days=10))
        assert auto_cancel_expired(test_db, now=NOW)["cancelled_bookings"] == []
