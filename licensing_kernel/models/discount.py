"""
Module: licensing_kernel.models.discount
Responsibility: ORM persistence for time-bounded product discounts.
Architecture position: Kernel > Models. May import from db/ only.

Invariants enforced:
    - 0 <= percentage <= 1 (ck_discount_percentage).
    - start_date < end_date (ck_discount_window).
    - A discount applies only while start_date <= now < end_date, it is
      active, and not deleted. The window check lives in CatalogSelector.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from licensing_kernel.db.base import TrackedBase, UUIDString
from licensing_kernel.db.types import PERCENTAGE_DECIMAL_PLACES, PERCENTAGE_PRECISION


class Discount(TrackedBase):
    """Percentage discount on one product within a date window."""

    __tablename__ = "discounts"

    __table_args__ = (
        CheckConstraint(
            "percentage >= 0 AND percentage <= 1",
            name="ck_discount_percentage",
        ),
        CheckConstraint("start_date < end_date", name="ck_discount_window"),
        Index("idx_discount_product_window", "product_id", "start_date", "end_date"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    # 0.10 means 10% off
    percentage: Mapped[Decimal] = mapped_column(
        Numeric(PERCENTAGE_PRECISION, PERCENTAGE_DECIMAL_PLACES, asdecimal=True),
        nullable=False,
    )

    start_date: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    end_date: Mapped[datetime] = mapped_column(
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    is_deleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Discount {self.name}: {self.percentage} on {self.product_id}>"
