"""
Status engine for bookings.

Guards raise domain errors when an action is not allowed from the booking's
current state. ``is_cancel`` and ``is_extend`` never coexist; ``is_pay`` may
coexist with either.
"""
from typing import List

from app.core.exceptions import AlreadyPendingError, InvalidStateError, StateConflictError
from app.models.booking import Booking, BookingStatusEnum

EXTENSION_PENDING = "Extension Pending"

CANCELLABLE_STATUSES = (BookingStatusEnum.PENDING, BookingStatusEnum.CONFIRMED)


def pending_actions(booking: Booking) -> List[str]:
    actions = []
    if booking.is_cancel:
        actions.append("cancellation")
    if booking.is_extend:
        actions.append("extension")
    if booking.is_pay:
        actions.append("payment")
    return actions


def lifecycle_state(booking: Booking) -> str:
    """Booking status with the extension sub-state folded in."""
    if booking.booking_status == BookingStatusEnum.IN_PROGRESS and booking.is_extend:
        return EXTENSION_PENDING
    return booking.booking_status.value


def _state_details(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "booking_status": booking.booking_status.value,
        "pending_actions": pending_actions(booking),
    }


def ensure_can_request_cancellation(booking: Booking) -> None:
    if booking.is_cancel:
        raise AlreadyPendingError(
            "A cancellation request is already pending for this booking",
            details=_state_details(booking),
        )
    if booking.booking_status not in CANCELLABLE_STATUSES:
        raise InvalidStateError(
            f"Cannot cancel a booking with status {booking.booking_status.value}",
            details=_state_details(booking),
        )
    if booking.is_extend:
        raise InvalidStateError(
            "Withdraw the pending extension request before cancelling",
            details=_state_details(booking),
        )


def ensure_cancellation_pending(booking: Booking) -> None:
    if not booking.is_cancel:
        raise StateConflictError(
            "No cancellation request is pending for this booking",
            details=_state_details(booking),
        )


def ensure_can_admin_cancel(booking: Booking) -> None:
    if booking.booking_status not in CANCELLABLE_STATUSES:
        raise InvalidStateError(
            f"Cannot cancel a booking with status {booking.booking_status.value}",
            details=_state_details(booking),
        )


def ensure_can_request_extension(booking: Booking) -> None:
    if booking.is_extend:
        raise AlreadyPendingError(
            "An extension request is already pending for this booking",
            details=_state_details(booking),
        )
    if booking.booking_status != BookingStatusEnum.IN_PROGRESS:
        raise InvalidStateError(
            "Only bookings in progress can be extended",
            details=_state_details(booking),
        )
    if booking.is_cancel:
        raise InvalidStateError(
            "Cannot extend a booking with a pending cancellation request",
            details=_state_details(booking),
        )


def ensure_extension_pending(booking: Booking) -> None:
    if not booking.is_extend or booking.new_end_date is None:
        raise StateConflictError(
            "No extension request is pending for this booking",
            details=_state_details(booking),
        )


def ensure_accepts_payment(booking: Booking) -> None:
    if booking.booking_status == BookingStatusEnum.CANCELLED:
        raise InvalidStateError(
            "Cannot record a payment for a cancelled booking",
            details=_state_details(booking),
        )


def ensure_payment_pending(booking: Booking) -> None:
    if not booking.is_pay:
        raise StateConflictError(
            "No payment is awaiting confirmation for this booking",
            details=_state_details(booking),
        )


def ensure_can_release(booking: Booking) -> None:
    if booking.booking_status != BookingStatusEnum.CONFIRMED:
        raise InvalidStateError(
            "Only confirmed bookings can be released",
            details=_state_details(booking),
        )
    if booking.is_cancel:
        raise InvalidStateError(
            "Cannot release a vehicle while a cancellation request is pending",
            details=_state_details(booking),
        )


def ensure_can_return(booking: Booking) -> None:
    if booking.booking_status != BookingStatusEnum.IN_PROGRESS:
        raise InvalidStateError(
            "Only bookings in progress can be returned",
            details=_state_details(booking),
        )
