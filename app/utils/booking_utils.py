"""
Date arithmetic and availability checks for bookings.
"""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from app.core.exceptions import InvalidDateError
from app.models.booking import Booking, ACTIVE_BOOKING_STATUSES


def rental_days(start_date: date, end_date: date) -> int:
    """Whole days between start and end; raises when end is not after start."""
    if end_date <= start_date:
        raise InvalidDateError(
            "End date must be after start date",
            details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )
    return (end_date - start_date).days


def extension_days(end_date: date, new_end_date: date) -> int:
    if new_end_date <= end_date:
        raise InvalidDateError(
            "New end date must be after the current end date",
            details={"end_date": end_date.isoformat(), "new_end_date": new_end_date.isoformat()},
        )
    return (new_end_date - end_date).days


def date_ranges_overlap(start1: date, end1: date, start2: date, end2: date) -> bool:
    return start1 <= end2 and start2 <= end1


def held_until(booking: Booking) -> date:
    if booking.is_extend and booking.new_end_date and booking.new_end_date > booking.end_date:
        return booking.new_end_date
    return booking.end_date


def unavailable_periods(bookings: Iterable[Booking], maintenance_days: int = 1) -> List[Dict]:
    """
    Booked ranges of a car plus the maintenance days that follow each one.

    A pending cancellation still holds its dates until an admin approves it.
    A pending extension holds the car through its staged end date.
    """
    periods = []
    for booking in bookings:
        if booking.booking_status not in ACTIVE_BOOKING_STATUSES:
            continue
        end_date = held_until(booking)
        periods.append({
            "start_date": booking.start_date,
            "end_date": end_date,
            "reason": "Booked by another customer",
            "booking_id": booking.booking_id,
        })
        if maintenance_days > 0:
            periods.append({
                "start_date": end_date + timedelta(days=1),
                "end_date": end_date + timedelta(days=maintenance_days),
                "reason": "Maintenance period",
                "booking_id": booking.booking_id,
            })
    return periods


def find_conflicts(
    start_date: date,
    end_date: date,
    existing: Iterable[Booking],
    maintenance_days: int = 1,
) -> List[Dict]:
    return [
        period for period in unavailable_periods(existing, maintenance_days)
        if date_ranges_overlap(start_date, end_date, period["start_date"], period["end_date"])
    ]


def unpaid_booking_deadline(booking: Booking) -> datetime:
    """
    When an unpaid Pending booking lapses.

    1 hour after booking if the rental starts the same day, 24 hours if it
    starts within 3 days, otherwise 72 hours.
    """
    booked_at = booking.booking_date
    days_until_start = (booking.start_date - booked_at.date()).days
    if days_until_start <= 0:
        window = timedelta(hours=1)
    elif days_until_start <= 3:
        window = timedelta(hours=24)
    else:
        window = timedelta(hours=72)
    return booked_at + window
