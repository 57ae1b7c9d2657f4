"""
Module: licensing_kernel.models.contract
Responsibility: ORM persistence for software-license contracts: who holds
    the license, for which product, at which locked price, for which
    window, and how far through the payment lifecycle it is.
Architecture position: Kernel > Models. May import from db/ and pure
    domain enums only.

Invariants enforced:
    - At most one non-deleted contract per (client, product). Enforced by
      the partial unique index uq_contract_active_client_product, so two
      racing purchases cannot both commit.
    - price is locked at creation and never recomputed (ORM listener in
      db/immutability.py rejects changes).
    - is_paid only moves false -> true (same listener).
    - start_date < end_date, price >= 0, years_supported >= 1.

Failure modes:
    - IntegrityError on a second active contract for the same pair; the
      ContractLedger translates it into DuplicateContractError.

Audit relevance:
    Renewed contracts are soft-deleted, never removed, and the replacement
    points back through renewed_from_id, so the full history of a license
    is reconstructable from this table plus the payment ledger.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from licensing_kernel.db.base import TrackedBase, UUIDString
from licensing_kernel.domain.identity import ClientKind


class Contract(TrackedBase):
    """
    License contract with a locked price.

    Guarantees:
        - (client_kind, client_key) references an existing client.
        - price never changes after INSERT.
        - is_signed and is_paid are set together by the payment reconciler
          when the ledger reaches the price.
        - is_deleted marks a contract superseded by a renewal.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        ForeignKeyConstraint(
            ["client_kind", "client_key"],
            ["clients.kind", "clients.natural_key"],
            name="fk_contract_client",
        ),
        Index(
            "uq_contract_active_client_product",
            "client_kind",
            "client_key",
            "product_id",
            unique=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        CheckConstraint("price >= 0", name="ck_contract_price"),
        CheckConstraint("start_date < end_date", name="ck_contract_window"),
        CheckConstraint("years_supported >= 1", name="ck_contract_years"),
        Index("idx_contract_client", "client_kind", "client_key"),
    )

    client_kind: Mapped[ClientKind] = mapped_column(
        String(20),
        nullable=False,
    )

    client_key: Mapped[str] = mapped_column(
        String(11),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    # Catalog price * (1 - discount) at creation time
    price: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    start_date: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    end_date: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    # Years of updates included with the license
    years_supported: Mapped[int] = mapped_column(
        nullable=False,
    )

    is_signed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    is_paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    # Contract this one replaced on renewal
    renewed_from_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Contract {self.id} {self.client_kind}:{self.client_key} "
            f"product={self.product_id} price={self.price}>"
        )
