"""
On-demand expiry sweep.

Pending extensions past their payment deadline are auto-cancelled and the
booking's staged end date is reverted. Pending bookings with no payment at
all are cancelled once their payment deadline passes, and waiting
customers of each freed car are notified. Bookings are never deleted.
"""
from datetime import datetime
from typing import Dict, List

from sqlalchemy.orm import Session

from app.core.email_service import EmailService
from app.core.logging_config import get_logger
from app.crud.booking import booking_crud
from app.models.booking import BookingStatusEnum
from app.models.extension import ExtensionStatusEnum
from app.models.transaction import Transaction
from app.services import waitlist_service
from app.utils.balance_utils import total_of
from app.utils.booking_utils import unpaid_booking_deadline
from common_utils import utc_now

logger = get_logger(__name__)


def auto_cancel_expired(
    db: Session, now: datetime = None, email_service: EmailService = None
) -> Dict[str, List[int]]:
    now = now or utc_now()
    expired_extensions = []
    cancelled_bookings = []
    freed_cars = set()

    for candidate in booking_crud.get_expired_extensions(db, now=now):
        booking = booking_crud.get_for_update(db, booking_id=candidate.booking_id)
        if not booking.is_extend:
            continue

        extension = booking_crud.get_pending_extension(db, booking_id=booking.booking_id)
        if extension is not None:
            extension.extension_status = ExtensionStatusEnum.AUTO_CANCELLED
            extension.rejection_reason = "Extension payment deadline passed"

        booking.is_extend = False
        booking.new_end_date = None
        booking.extension_payment_deadline = None
        expired_extensions.append(booking.booking_id)

    for candidate in booking_crud.get_unpaid_pending(db):
        booking = booking_crud.get_for_update(db, booking_id=candidate.booking_id)
        if booking.booking_status != BookingStatusEnum.PENDING or total_of(booking.payments) > 0:
            continue
        if now <= unpaid_booking_deadline(booking):
            continue

        booking.booking_status = BookingStatusEnum.CANCELLED
        db.add(Transaction(
            booking_id=booking.booking_id,
            customer_id=booking.customer_id,
            car_id=booking.car_id,
            cancellation_date=now,
        ))
        freed_cars.add(booking.car_id)
        cancelled_bookings.append(booking.booking_id)

    db.commit()

    if expired_extensions or cancelled_bookings:
        logger.info(
            f"Auto-cancel sweep: {len(expired_extensions)} extensions expired {expired_extensions}, "
            f"{len(cancelled_bookings)} unpaid bookings cancelled {cancelled_bookings}"
        )
    else:
        logger.debug("Auto-cancel sweep found nothing to cancel")

    waitlist_notified = []
    for car_id in sorted(freed_cars):
        waitlist_notified.extend(
            waitlist_service.notify_car_available(db, car_id, email_service=email_service, now=now)
        )

    return {
        "expired_extensions": expired_extensions,
        "cancelled_bookings": cancelled_bookings,
        "waitlist_notified": waitlist_notified,
    }
