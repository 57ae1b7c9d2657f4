"""
Module: licensing_kernel.selectors.contract_selector
Responsibility: Read-only contract and payment-ledger queries.
    Balances are derived from Payment rows at query time; there is no
    stored balance anywhere.
Architecture position: Kernel > Selectors. May import from models/,
    selectors/base.py and domain DTOs.

Invariants enforced:
    - Ownership: get_contract() only returns a contract whose
      (client_kind, client_key) matches the caller's ClientRef.
    - Deleted contracts are invisible to get_contract().
    - The ledger is ordered by (sequence); sums are exact Decimal sums in
      Python over the ordered rows.

Failure modes:
    - ContractNotFoundError when the contract is missing, deleted, or owned
      by another client. The three cases are indistinguishable to callers.
"""

from uuid import UUID

from sqlalchemy import select

from licensing_kernel.domain.dtos import ContractRecord, PaymentRecord
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import ContractNotFoundError
from licensing_kernel.models.contract import Contract
from licensing_kernel.models.payment import Payment
from licensing_kernel.selectors.base import BaseSelector


class ContractSelector(BaseSelector):
    """Contract and ledger lookups."""

    def contract_exists_for(self, client: ClientRef, product_id: UUID) -> bool:
        """True when the client already holds a non-deleted contract for the product."""
        stmt = select(Contract.id).where(
            Contract.client_kind == client.kind.value,
            Contract.client_key == client.natural_key,
            Contract.product_id == product_id,
            Contract.is_deleted == False,  # noqa: E712
        )
        return self.session.execute(stmt).first() is not None

    def _owned_contract_stmt(self, client: ClientRef, contract_id: UUID):
        return select(Contract).where(
            Contract.id == contract_id,
            Contract.client_kind == client.kind.value,
            Contract.client_key == client.natural_key,
            Contract.is_deleted == False,  # noqa: E712
        )

    def get_contract_row(
        self,
        client: ClientRef,
        contract_id: UUID,
        for_update: bool = False,
    ) -> Contract:
        """
        Owned, non-deleted contract row.

        With ``for_update`` the row is locked (SELECT ... FOR UPDATE) until
        the surrounding transaction ends, so concurrent payments against one
        contract serialize.

        Raises:
            ContractNotFoundError: If missing, deleted, or not owned.
        """
        stmt = self._owned_contract_stmt(client, contract_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        contract = self.session.execute(stmt).scalar_one_or_none()
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return contract

    def get_contract(self, client: ClientRef, contract_id: UUID) -> ContractRecord:
        """
        Owned, non-deleted contract as a DTO.

        Raises:
            ContractNotFoundError: If missing, deleted, or not owned.
        """
        return ContractRecord.from_model(self.get_contract_row(client, contract_id))

    def list_payments(self, contract_id: UUID) -> list[PaymentRecord]:
        """Non-deleted ledger rows of a contract in sequence order."""
        stmt = (
            select(Payment)
            .where(
                Payment.contract_id == contract_id,
                Payment.is_deleted == False,  # noqa: E712
            )
            .order_by(Payment.sequence)
        )
        return [
            PaymentRecord.from_model(p)
            for p in self.session.execute(stmt).scalars().all()
        ]

    def payments_total(self, contract_id: UUID) -> Money:
        """Exact sum of the contract's non-deleted ledger rows (zero when empty)."""
        return Money.sum(p.amount for p in self.list_payments(contract_id))

    def last_sequence(self, contract_id: UUID) -> int:
        """Highest ledger sequence of a contract, 0 when the ledger is empty."""
        stmt = (
            select(Payment.sequence)
            .where(Payment.contract_id == contract_id)
            .order_by(Payment.sequence.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() or 0
