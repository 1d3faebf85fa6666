"""
Balance and payment-status derivation.

Every route and service reads money figures through these functions; the
balance is never stored.

    balance = total_amount - sum(payments) + sum(refunds)
"""
from enum import Enum as PyEnum
from typing import Any, Dict, Iterable, Union

Number = Union[int, float]


class PaymentStatusEnum(str, PyEnum):
    PAID = "Paid"
    UNPAID = "Unpaid"


def _money(value: Number) -> float:
    return round(float(value or 0), 2)


def _amount(entry: Any) -> float:
    """Accept a Payment, a Refund or a bare number"""
    if isinstance(entry, (int, float)):
        return float(entry)
    if hasattr(entry, "refund_amount"):
        return float(entry.refund_amount or 0)
    return float(entry.amount or 0)


def total_of(entries: Iterable[Any]) -> float:
    return _money(sum(_amount(e) for e in entries))


def derive_balance(total_amount: Number, payments: Iterable[Any], refunds: Iterable[Any]) -> float:
    return _money(float(total_amount or 0) - total_of(payments) + total_of(refunds))


def derive_payment_status(balance: Number) -> PaymentStatusEnum:
    return PaymentStatusEnum.PAID if _money(balance) <= 0 else PaymentStatusEnum.UNPAID


def available_for_refund(payments: Iterable[Any], refunds: Iterable[Any]) -> float:
    return _money(total_of(payments) - total_of(refunds))


def summarize_booking(booking) -> Dict[str, Any]:
    """Money figures of a booking, derived from its payment and refund rows."""
    payments = list(booking.payments)
    refunds = list(booking.refunds)
    balance = derive_balance(booking.total_amount, payments, refunds)
    return {
        "total_amount": _money(booking.total_amount),
        "total_paid": total_of(payments),
        "total_refunded": total_of(refunds),
        "balance": balance,
        "payment_status": derive_payment_status(balance).value,
    }
