"""
Service layer for the product catalog.

Creates products and discounts and changes their price or activity.
Existing contracts are never touched: a contract's price was locked when it
was created.

Returns ProductInfo / DiscountInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from licensing_kernel.domain.values import Money, Rate
from licensing_kernel.exceptions import (
    DiscountNotFoundError,
    InvalidContractTermsError,
    InvalidInputError,
    ProductNotFoundError,
)
from licensing_kernel.logging_config import get_logger
from licensing_kernel.models.discount import Discount
from licensing_kernel.models.product import Product
from licensing_kernel.services.base import BaseService

logger = get_logger("services.catalog")


@dataclass(frozen=True)
class ProductInfo:
    """Immutable DTO for product data."""

    id: UUID
    name: str
    description: str
    version: str
    category: str
    price: Money


@dataclass(frozen=True)
class DiscountInfo:
    """Immutable DTO for discount data."""

    id: UUID
    name: str
    product_id: UUID
    percentage: Rate
    start_date: datetime
    end_date: datetime
    is_active: bool

    def applies_at(self, now: datetime) -> bool:
        return self.is_active and self.start_date <= now < self.end_date


class CatalogService(BaseService):
    """
    Administrative writes to products and discounts.

    Enforces non-negative prices, percentages in [0, 1], and
    start_date < end_date on discount windows. Values finer than their
    column scale are rejected, so what is stored is what was given.
    """

    def _product_dto(self, product: Product) -> ProductInfo:
        return ProductInfo(
            id=product.id,
            name=product.name,
            description=product.description,
            version=product.version,
            category=product.category,
            price=Money.of(product.price),
        )

    def _discount_dto(self, discount: Discount) -> DiscountInfo:
        return DiscountInfo(
            id=discount.id,
            name=discount.name,
            product_id=discount.product_id,
            percentage=Rate.of(discount.percentage),
            start_date=discount.start_date,
            end_date=discount.end_date,
            is_active=discount.is_active,
        )

    def _get_product(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None or product.is_deleted:
            raise ProductNotFoundError(str(product_id))
        return product

    def _get_discount(self, discount_id: UUID) -> Discount:
        discount = self.session.get(Discount, discount_id)
        if discount is None or discount.is_deleted:
            raise DiscountNotFoundError(str(discount_id))
        return discount

    def create_product(
        self,
        name: str,
        price: Money | Decimal | str,
        version: str,
        category: str,
        description: str = "",
    ) -> ProductInfo:
        """
        Create a product.

        Raises:
            InvalidInputError: Blank name.
            NegativePriceError: Price below zero.
            InvalidInputError: Price with more than 9 decimal places.
        """
        if not name or not name.strip():
            raise InvalidInputError("Product name is required")
        price = Money.price(price.amount if isinstance(price, Money) else price)

        product = Product(
            name=name.strip(),
            description=description,
            version=version,
            category=category,
            price=price.amount,
            is_deleted=False,
        )
        self.session.add(product)
        self.session.flush()

        logger.info(
            "product_created",
            extra={"product_id": str(product.id), "price": str(price)},
        )
        return self._product_dto(product)

    def update_product_price(
        self,
        product_id: UUID,
        new_price: Money | Decimal | str,
    ) -> ProductInfo:
        """
        Change a product's catalog price. Existing contracts keep theirs.

        Raises:
            ProductNotFoundError: Unknown or deleted product.
            NegativePriceError: Price below zero.
        """
        new_price = Money.price(
            new_price.amount if isinstance(new_price, Money) else new_price
        )
        product = self._get_product(product_id)
        old_price = product.price
        product.price = new_price.amount
        self.session.flush()

        logger.info(
            "product_price_updated",
            extra={
                "product_id": str(product_id),
                "old_price": str(old_price),
                "new_price": str(new_price),
            },
        )
        return self._product_dto(product)

    def create_discount(
        self,
        product_id: UUID,
        name: str,
        percentage: Rate | Decimal | str,
        start_date: datetime,
        end_date: datetime,
    ) -> DiscountInfo:
        """
        Create an active discount on a product for [start_date, end_date).

        Raises:
            ProductNotFoundError: Unknown or deleted product.
            InvalidDiscountError: Percentage outside [0, 1] or with more than
                5 decimal places.
            InvalidContractTermsError: Empty or inverted window.
        """
        rate = percentage if isinstance(percentage, Rate) else Rate.of(percentage)
        if start_date.tzinfo is None or end_date.tzinfo is None:
            raise InvalidContractTermsError("discount dates must be timezone-aware")
        if start_date >= end_date:
            raise InvalidContractTermsError("discount start_date must be before end_date")
        self._get_product(product_id)

        discount = Discount(
            name=name,
            product_id=product_id,
            percentage=rate.value,
            start_date=start_date,
            end_date=end_date,
            is_active=True,
            is_deleted=False,
        )
        self.session.add(discount)
        self.session.flush()

        logger.info(
            "discount_created",
            extra={
                "discount_id": str(discount.id),
                "product_id": str(product_id),
                "percentage": str(rate),
            },
        )
        return self._discount_dto(discount)

    def deactivate_discount(self, discount_id: UUID) -> DiscountInfo:
        """
        Stop a discount from applying. Idempotent.

        Raises:
            DiscountNotFoundError: Unknown or deleted discount.
        """
        discount = self._get_discount(discount_id)
        if discount.is_active:
            discount.is_active = False
            self.session.flush()
            logger.info("discount_deactivated", extra={"discount_id": str(discount_id)})
        return self._discount_dto(discount)
