"""
Reconciliation -- pure payment rules for a contract ledger.

Responsibility:
    Outstanding-balance arithmetic, payment-request validation, settlement
    and expiry detection, and the refund that balances a lapsed contract.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. PaymentReconciler and
    ContractLedger load the ledger and call into here.

Invariants enforced:
    - sum(payments) never exceeds the contract price for a live contract.
    - A SINGLE payment equals the price exactly and is only accepted on an
      empty ledger.
    - An INSTALLMENT is strictly positive and no larger than the
      outstanding balance.
    - After renewal the old ledger sums to exactly zero.
"""

from collections.abc import Iterable
from datetime import datetime
from enum import Enum
from uuid import UUID

from licensing_kernel.domain.dtos import PaymentKind, PaymentRequest
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import (
    InvalidPaymentAmountError,
    PaymentAmountMismatchError,
    PaymentExceedsOutstandingError,
)


class ContractState(str, Enum):
    """Payment lifecycle state of a contract."""

    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    EXPIRED_UNPAID = "expired_unpaid"
    RENEWED = "renewed"


def outstanding_balance(price: Money, payments: Iterable[Money]) -> Money:
    """price - sum(payments). May be negative only on a corrupted ledger."""
    return price.subtract(Money.sum(payments))


def is_expired(end_date: datetime, now: datetime) -> bool:
    """A contract lapses strictly after its end date."""
    return now > end_date


def is_settled(price: Money, paid_total: Money) -> bool:
    return paid_total.compare(price) == 0


def contract_state(
    *,
    price: Money,
    paid_total: Money,
    is_paid: bool,
    is_deleted: bool,
    end_date: datetime,
    now: datetime,
) -> ContractState:
    """Classify a contract. PaymentReconciler branches on the result."""
    if is_deleted:
        return ContractState.RENEWED
    if is_paid:
        return ContractState.PAID
    if is_expired(end_date, now):
        return ContractState.EXPIRED_UNPAID
    if paid_total.is_zero:
        return ContractState.UNPAID
    return ContractState.PARTIALLY_PAID


def validate_payment(
    contract_id: UUID,
    request: PaymentRequest,
    price: Money,
    paid_total: Money,
) -> None:
    """
    Check a payment request against the current ledger.

    Raises:
        PaymentAmountMismatchError: SINGLE amount differs from the price,
            or the ledger already holds installments.
        InvalidPaymentAmountError: INSTALLMENT amount is zero or negative.
        PaymentExceedsOutstandingError: INSTALLMENT is larger than the
            outstanding balance.
    """
    amount = request.amount
    if request.kind is PaymentKind.SINGLE:
        if amount.compare(price) != 0 or not paid_total.is_zero:
            raise PaymentAmountMismatchError(
                str(contract_id), str(amount), str(price)
            )
        return

    if not amount.is_positive:
        raise InvalidPaymentAmountError(str(amount))
    outstanding = price.subtract(paid_total)
    if amount > outstanding:
        raise PaymentExceedsOutstandingError(
            str(contract_id), str(amount), str(outstanding)
        )


def renewal_refund(paid_total: Money) -> Money:
    """Refund entry that brings a lapsed contract's ledger back to zero."""
    return -paid_total
