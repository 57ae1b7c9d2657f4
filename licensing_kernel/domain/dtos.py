"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the service boundary:
    PaymentRequest (input), DiscountBreakdown (resolver output), and the
    ContractRecord / PaymentRecord views of persisted rows.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from
    selectors and services, never from domain logic.

Invariants enforced:
    - Domain logic accepts and returns DTOs, never ORM entities.
    - Every monetary field is a Money, every fraction a Rate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from licensing_kernel.domain.identity import ClientKind, ClientRef
from licensing_kernel.domain.values import Money, Rate
from licensing_kernel.exceptions import InvalidInputError

if TYPE_CHECKING:
    from licensing_kernel.models.contract import Contract as ContractModel
    from licensing_kernel.models.payment import Payment as PaymentModel


class PaymentKind(str, Enum):
    """Shape of a payment request."""

    SINGLE = "single"
    INSTALLMENT = "installment"


class LedgerEntryKind(str, Enum):
    """Direction of a ledger row."""

    PAYMENT = "payment"
    REFUND = "refund"


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    """
    A request to pay against a contract.

    SINGLE must equal the full contract price. INSTALLMENT may be any
    positive amount up to the outstanding balance. Amounts finer than the
    money scale are rejected on construction.
    """

    kind: PaymentKind
    amount: Money

    def __post_init__(self) -> None:
        try:
            kind = PaymentKind(self.kind)
        except ValueError as e:
            raise InvalidInputError(f"Unknown payment kind: {self.kind!r}") from e
        object.__setattr__(self, "kind", kind)
        if not isinstance(self.amount, Money):
            object.__setattr__(self, "amount", Money.of(self.amount))
        self.amount.require_storable()

    @classmethod
    def single(cls, amount: Money | str) -> PaymentRequest:
        return cls(kind=PaymentKind.SINGLE, amount=amount)

    @classmethod
    def installment(cls, amount: Money | str) -> PaymentRequest:
        return cls(kind=PaymentKind.INSTALLMENT, amount=amount)


@dataclass(frozen=True, slots=True)
class DiscountBreakdown:
    """How a final discount rate was assembled."""

    base: Rate
    bonus: Rate
    final: Rate


@dataclass(frozen=True)
class ContractRecord:
    """Immutable view of a persisted contract."""

    id: UUID
    client: ClientRef
    product_id: UUID
    price: Money
    start_date: datetime
    end_date: datetime
    years_supported: int
    is_signed: bool
    is_paid: bool
    is_deleted: bool
    renewed_from_id: UUID | None = None

    @classmethod
    def from_model(cls, model: ContractModel) -> ContractRecord:
        return cls(
            id=model.id,
            client=ClientRef(
                kind=ClientKind(model.client_kind),
                natural_key=model.client_key,
            ),
            product_id=model.product_id,
            price=Money.of(model.price),
            start_date=model.start_date,
            end_date=model.end_date,
            years_supported=model.years_supported,
            is_signed=model.is_signed,
            is_paid=model.is_paid,
            is_deleted=model.is_deleted,
            renewed_from_id=model.renewed_from_id,
        )


@dataclass(frozen=True)
class PaymentRecord:
    """Immutable view of one ledger row."""

    id: UUID
    contract_id: UUID
    amount: Money
    kind: LedgerEntryKind
    sequence: int
    payment_date: datetime

    @classmethod
    def from_model(cls, model: PaymentModel) -> PaymentRecord:
        return cls(
            id=model.id,
            contract_id=model.contract_id,
            amount=Money.of(model.amount),
            kind=LedgerEntryKind(model.kind),
            sequence=model.sequence,
            payment_date=model.payment_date,
        )
