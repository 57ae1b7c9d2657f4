"""
Module: licensing_kernel.models.client
Responsibility: ORM persistence for the clients that hold license contracts.
    Individuals and companies share one table, discriminated by kind and
    keyed by their natural identifier.
Architecture position: Kernel > Models. May import from db/ and the pure
    domain identity type only.

Invariants enforced:
    - (kind, natural_key) is unique (uq_client_identity). Contracts
      reference the pair, so it never changes once a contract exists.
    - Deletion is logical (is_deleted); a deleted client no longer exists
      for the engine.

Client CRUD is outside the engine: rows are written by an external
collaborator and only read here.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from licensing_kernel.db.base import TrackedBase
from licensing_kernel.domain.identity import ClientKind, ClientRef


class Client(TrackedBase):
    """
    Individual or company client.

    Guarantees:
        - kind is a ClientKind value.
        - natural_key is the PESEL (individual) or KRS (company).
    """

    __tablename__ = "clients"

    __table_args__ = (
        UniqueConstraint("kind", "natural_key", name="uq_client_identity"),
        Index("idx_client_deleted", "is_deleted"),
    )

    kind: Mapped[ClientKind] = mapped_column(
        String(20),
        nullable=False,
    )

    natural_key: Mapped[str] = mapped_column(
        String(11),
        nullable=False,
    )

    # Person's full name or company name
    display_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    phone_number: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # Registered address; companies only
    address: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    @property
    def ref(self) -> ClientRef:
        return ClientRef(kind=ClientKind(self.kind), natural_key=self.natural_key)

    def __repr__(self) -> str:
        return f"<Client {self.kind}:{self.natural_key}>"
