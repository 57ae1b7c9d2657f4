"""
Module: licensing_kernel.models.payment
Responsibility: ORM persistence for the per-contract payment ledger.
    Positive rows are money received, negative rows are refunds.
Architecture position: Kernel > Models. May import from db/ and pure
    domain enums only.

Invariants enforced:
    - Append-only: rows are never updated or deleted (ORM listener in
      db/immutability.py). Corrections are new rows.
    - (contract_id, sequence) is unique, giving each contract a gapless,
      totally ordered ledger.
    - A contract's balance is price - sum(amount) over its non-deleted rows.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from licensing_kernel.db.base import TrackedBase, UUIDString
from licensing_kernel.domain.dtos import LedgerEntryKind


class Payment(TrackedBase):
    """One signed entry in a contract's payment ledger."""

    __tablename__ = "payments"

    __table_args__ = (
        UniqueConstraint("contract_id", "sequence", name="uq_payment_sequence"),
        Index("idx_payment_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )

    # Signed: positive = received, negative = refund
    amount: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    kind: Mapped[LedgerEntryKind] = mapped_column(
        String(20),
        nullable=False,
        default=LedgerEntryKind.PAYMENT,
    )

    # 1-based position within the contract's ledger
    sequence: Mapped[int] = mapped_column(
        nullable=False,
    )

    payment_date: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Payment {self.contract_id}#{self.sequence}: {self.amount}>"
