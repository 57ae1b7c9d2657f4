"""
DiscountResolver -- final discount rate for a (client, product) pair.

Responsibility:
    Gathers the two discount inputs from the store and combines them:
    the highest product discount whose window contains now, and the
    recurring-client bonus for clients holding a current contract.

Architecture position:
    Kernel > Services. Reads through CatalogSelector and ClientSelector,
    combines through domain.pricing. Writes nothing.

Invariants enforced:
    - final = clamp(base + bonus, 0, 1). A final rate outside [0, 1] is
      unrepresentable (Rate).
    - "now" always comes from the injected Clock.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from licensing_kernel.domain.clock import Clock, SystemClock
from licensing_kernel.domain.dtos import DiscountBreakdown
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.pricing import (
    DEFAULT_RECURRING_CLIENT_BONUS,
    combine_discounts,
    recurring_client_bonus,
)
from licensing_kernel.domain.values import Rate
from licensing_kernel.logging_config import get_logger
from licensing_kernel.selectors.catalog_selector import CatalogSelector
from licensing_kernel.selectors.client_selector import ClientSelector
from licensing_kernel.services.base import BaseService

logger = get_logger("services.discount_resolver")


class DiscountResolver(BaseService):
    """Computes the discount a client gets on a product at the current time."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        bonus: Rate = DEFAULT_RECURRING_CLIENT_BONUS,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._bonus = bonus
        self._catalog = CatalogSelector(session)
        self._clients = ClientSelector(session)

    def resolve(self, product_id: UUID, client: ClientRef) -> DiscountBreakdown:
        """
        Resolve the discount for ``client`` buying ``product_id`` now.

        Returns:
            DiscountBreakdown with the product discount, the bonus, and the
            clamped final rate.
        """
        now = self._clock.now()
        base = self._catalog.highest_active_discount(product_id, now)
        has_current = self._clients.client_has_prior_active_contract(client, now)
        bonus = recurring_client_bonus(has_current, self._bonus)
        breakdown = combine_discounts(base, bonus)

        logger.debug(
            "discount_resolved",
            extra={
                "product_id": str(product_id),
                "client_ref": str(client),
                "base_rate": str(breakdown.base),
                "bonus_rate": str(breakdown.bonus),
                "final_rate": str(breakdown.final),
            },
        )
        return breakdown
