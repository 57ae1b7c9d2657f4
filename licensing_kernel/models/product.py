"""
Module: licensing_kernel.models.product
Responsibility: ORM persistence for licensable software products and their
    catalog price.
Architecture position: Kernel > Models. May import from db/ only.

Invariants enforced:
    - price is an exact decimal and never negative (ck_product_price).
    - Contracts copy the price at creation; changing it here never alters
      an existing contract.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from licensing_kernel.db.base import TrackedBase


class Product(TrackedBase):
    """Software product offered under license."""

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        Index("idx_product_deleted", "is_deleted"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        String(4000),
        nullable=False,
        default="",
    )

    version: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # e.g. "finance", "education"
    category: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Yearly license price before discounts
    price: Mapped[Decimal] = mapped_column(
        nullable=False,
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Product {self.name} {self.version}: {self.price}>"
