"""
Module: licensing_kernel.selectors.catalog_selector
Responsibility: Read-only product and discount queries: does a product
    exist, what is its catalog price, and which discount applies right now.
Architecture position: Kernel > Selectors. May import from models/,
    selectors/base.py and domain values.

Invariants enforced:
    - A discount applies only while start_date <= now < end_date, it is
      active, and it is not deleted.
    - Deleted products do not exist for the engine.

Failure modes:
    - ProductNotFoundError from get_product_price() for an unknown or
      deleted product.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select

from licensing_kernel.domain.values import Money, Rate
from licensing_kernel.exceptions import ProductNotFoundError
from licensing_kernel.models.discount import Discount
from licensing_kernel.models.product import Product
from licensing_kernel.selectors.base import BaseSelector


class CatalogSelector(BaseSelector):
    """Product and discount lookups."""

    def product_exists(self, product_id: UUID) -> bool:
        stmt = select(Product.id).where(
            Product.id == product_id,
            Product.is_deleted == False,  # noqa: E712
        )
        return self.session.execute(stmt).first() is not None

    def get_product_price(self, product_id: UUID) -> Money:
        """
        Current catalog price of a product.

        Raises:
            ProductNotFoundError: If the product is missing or deleted.
        """
        stmt = select(Product.price).where(
            Product.id == product_id,
            Product.is_deleted == False,  # noqa: E712
        )
        price = self.session.execute(stmt).scalar_one_or_none()
        if price is None:
            raise ProductNotFoundError(str(product_id))
        return Money.price(price)

    def highest_active_discount(self, product_id: UUID, now: datetime) -> Rate | None:
        """
        Largest discount percentage applicable to the product at ``now``.

        Returns None when no discount window contains ``now``.
        """
        stmt = select(func.max(Discount.percentage)).where(
            Discount.product_id == product_id,
            Discount.is_active == True,  # noqa: E712
            Discount.is_deleted == False,  # noqa: E712
            Discount.start_date <= now,
            Discount.end_date > now,
        )
        percentage = self.session.execute(stmt).scalar_one_or_none()
        if percentage is None:
            return None
        return Rate.of(percentage)
