"""
Payment and refund ledger writes.

The check against the derived balance and the insert happen under the
booking's row lock, and every write touches the booking row so its version
counter moves.
"""
import math
from datetime import datetime
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import (
    NotFoundError,
    OverpaymentError,
    OverrefundError,
    StateConflictError,
    ValidationError,
)
from app.core.logging_config import get_logger
from app.models.booking import Booking, BookingStatusEnum
from app.models.payment import Payment, PaymentMethodEnum
from app.models.refund import Refund
from app.schemas.payment import PaymentBase
from app.schemas.refund import RefundBase
from app.services.booking_workflow import lock_booking
from app.utils import booking_state
from app.utils.balance_utils import (
    available_for_refund,
    derive_balance,
    summarize_booking,
    total_of,
)
from common_utils import utc_now

logger = get_logger(__name__)


def _validate_ledger_entry(amount: float, method: PaymentMethodEnum, reference_no: Optional[str]) -> None:
    if amount is None or not math.isfinite(float(amount)) or float(amount) <= 0:
        raise ValidationError("Amount must be greater than zero", details={"amount": amount})
    if method == PaymentMethodEnum.GCASH and not (reference_no or "").strip():
        raise ValidationError("Reference number is required for GCash transactions")


def _touch(booking: Booking, now: datetime) -> None:
    # Forces an UPDATE on the booking row so version_id is bumped
    booking.updated_at = now


def record_payment(
    db: Session,
    data: PaymentBase,
    *,
    customer_id: Optional[int] = None,
    submitted_by_customer: bool = False,
    now: datetime = None,
) -> Tuple[Payment, Dict]:
    """
    Record a payment against a booking.

    Customer-submitted payments set ``is_pay`` and wait for an admin to
    confirm them; payments entered by an admin are taken as verified.
    """
    now = now or utc_now()
    _validate_ledger_entry(data.amount, data.payment_method, data.reference_no)

    booking = lock_booking(db, data.booking_id, customer_id)
    booking_state.ensure_accepts_payment(booking)

    amount = round(float(data.amount), 2)
    payments = list(booking.payments)
    refunds = list(booking.refunds)
    balance = derive_balance(booking.total_amount, payments, refunds)
    if amount > balance:
        raise OverpaymentError(
            f"Payment of {amount:.2f} exceeds the remaining balance of {balance:.2f}",
            details={
                "total_amount": booking.total_amount,
                "total_paid": total_of(payments),
                "total_refunded": total_of(refunds),
                "balance": balance,
                "attempted_payment": amount,
            },
        )

    payment = Payment(
        booking=booking,
        customer_id=booking.customer_id,
        amount=amount,
        payment_method=data.payment_method,
        gcash_no=data.gcash_no,
        reference_no=data.reference_no,
        description=data.description,
        paid_date=now,
    )
    db.add(payment)
    if submitted_by_customer:
        booking.is_pay = True
    _touch(booking, now)

    db.commit()
    db.refresh(payment)
    db.refresh(booking)

    summary = summarize_booking(booking)
    logger.info(
        f"Payment {payment.payment_id} of {amount} recorded for booking {booking.booking_id} "
        f"({data.payment_method.value}); balance now {summary['balance']}"
    )
    return payment, summary


def confirm_payment(db: Session, booking_id: int) -> Booking:
    booking = lock_booking(db, booking_id)
    booking_state.ensure_payment_pending(booking)

    booking.is_pay = False
    if booking.booking_status == BookingStatusEnum.PENDING:
        booking.booking_status = BookingStatusEnum.CONFIRMED

    db.commit()
    db.refresh(booking)
    logger.info(f"Payment confirmed for booking {booking_id}, status {booking.booking_status.value}")
    return booking


def record_refund(db: Session, data: RefundBase, *, now: datetime = None) -> Tuple[Refund, Dict]:
    now = now or utc_now()
    _validate_ledger_entry(data.refund_amount, data.refund_method, data.reference_no)

    booking = lock_booking(db, data.booking_id)

    amount = round(float(data.refund_amount), 2)
    payments = list(booking.payments)
    refunds = list(booking.refunds)
    available = available_for_refund(payments, refunds)
    if amount > available:
        raise OverrefundError(
            f"Refund of {amount:.2f} exceeds the refundable amount of {available:.2f}",
            details={
                "total_paid": total_of(payments),
                "total_refunded": total_of(refunds),
                "available_for_refund": available,
                "attempted_refund": amount,
            },
        )

    refund = Refund(
        booking=booking,
        customer_id=booking.customer_id,
        refund_method=data.refund_method,
        gcash_no=data.gcash_no,
        reference_no=data.reference_no,
        refund_amount=amount,
        refund_type=data.refund_type,
        description=data.description,
        refund_date=now,
    )
    db.add(refund)
    _touch(booking, now)

    db.commit()
    db.refresh(refund)
    db.refresh(booking)

    summary = summarize_booking(booking)
    logger.info(
        f"Refund {refund.refund_id} of {amount} recorded for booking {booking.booking_id}; "
        f"balance now {summary['balance']}"
    )
    return refund, summary


def delete_payment(db: Session, payment_id: int, *, now: datetime = None) -> Dict:
    now = now or utc_now()
    payment = db.query(Payment).filter(Payment.payment_id == payment_id).first()
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found", error_code="PAYMENT_NOT_FOUND")

    booking = lock_booking(db, payment.booking_id)
    remaining = [p for p in booking.payments if p.payment_id != payment_id]
    if total_of(booking.refunds) > total_of(remaining):
        raise StateConflictError(
            "Cannot delete a payment that has already been refunded",
            details={
                "total_refunded": total_of(booking.refunds),
                "total_paid_after_delete": total_of(remaining),
            },
        )

    db.delete(payment)
    _touch(booking, now)

    db.commit()
    db.refresh(booking)

    summary = summarize_booking(booking)
    logger.info(f"Payment {payment_id} deleted from booking {booking.booking_id}; balance now {summary['balance']}")
    return summary
