"""
Pricing -- pure discount and price-lock rules.

Responsibility:
    Combines a product discount with the recurring-client bonus and turns a
    catalog price into the locked price a contract stores.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O. The DiscountResolver
    service gathers the inputs from the store and calls into here.

Invariants enforced:
    - The final rate is clamped to [0, 1] before it touches a price.
    - locked price = catalog price * (1 - final rate), rounded half-up to the
      money scale, computed once. The rounded value is the one stored and the
      one a single payment must match.
"""

from decimal import Decimal

from licensing_kernel.domain.dtos import DiscountBreakdown
from licensing_kernel.domain.values import Money, Rate

DEFAULT_RECURRING_CLIENT_BONUS = Rate(Decimal("0.05"))


def recurring_client_bonus(
    has_active_contract: bool,
    bonus: Rate = DEFAULT_RECURRING_CLIENT_BONUS,
) -> Rate:
    """Bonus granted to a client with at least one current contract."""
    return bonus if has_active_contract else Rate.zero()


def combine_discounts(base: Rate | None, bonus: Rate | None) -> DiscountBreakdown:
    """
    Combine the product discount with the recurring-client bonus.

    Either part may be absent; an absent part counts as zero. The sum is
    clamped, so a 0.98 product discount plus a 0.05 bonus yields 1.
    """
    base = base or Rate.zero()
    bonus = bonus or Rate.zero()
    final = Rate.clamped(base.value + bonus.value)
    return DiscountBreakdown(base=base, bonus=bonus, final=final)


def locked_price(list_price: Money, discount: Rate) -> Money:
    """
    Price a contract locks in at creation, at the money scale.

    Raises:
        NegativePriceError: If the catalog price is negative.
        InvalidDiscountError: If the discount is outside [0, 1].
    """
    return Money.price(list_price.amount).multiply_by_rate(discount).rounded()
