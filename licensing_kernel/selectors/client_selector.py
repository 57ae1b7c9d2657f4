"""
Module: licensing_kernel.selectors.client_selector
Responsibility: Read-only client queries used by the discount resolver and
    the payment path.
Architecture position: Kernel > Selectors. May import from models/,
    selectors/base.py and domain identity types.
"""

from datetime import datetime

from sqlalchemy import select

from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.models.client import Client
from licensing_kernel.models.contract import Contract
from licensing_kernel.selectors.base import BaseSelector


class ClientSelector(BaseSelector):
    """Client existence and contract-history lookups."""

    def client_exists(self, client: ClientRef) -> bool:
        stmt = select(Client.id).where(
            Client.kind == client.kind.value,
            Client.natural_key == client.natural_key,
            Client.is_deleted == False,  # noqa: E712
        )
        return self.session.execute(stmt).first() is not None

    def client_has_prior_active_contract(self, client: ClientRef, now: datetime) -> bool:
        """
        True when the client holds a current contract for any product.

        A contract counts while it is not deleted and its window contains
        ``now`` (start_date <= now < end_date). Payment state is ignored.
        """
        stmt = select(Contract.id).where(
            Contract.client_kind == client.kind.value,
            Contract.client_key == client.natural_key,
            Contract.is_deleted == False,  # noqa: E712
            Contract.start_date <= now,
            Contract.end_date > now,
        )
        return self.session.execute(stmt.limit(1)).first() is not None
