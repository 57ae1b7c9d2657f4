"""
PaymentWriter -- append-only writes to a contract's payment ledger.

Responsibility:
    Inserts one signed ledger row per call: positive for money received,
    negative for a refund. Assigns the next per-contract sequence number so
    the ledger has a deterministic order.

Architecture position:
    Kernel > Services. The only code path that creates Payment rows.

Invariants enforced:
    - Rows are only ever inserted (updates and deletes are rejected by the
      listeners in db/immutability.py).
    - Sequence numbers per contract are 1, 2, 3, ... The caller holds the
      contract row lock, and (contract_id, sequence) is unique, so two
      writers can never claim the same slot.

Failure modes:
    - InvalidInputError for a zero amount, or a sign that does not match
      the entry kind.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from licensing_kernel.domain.clock import Clock, SystemClock
from licensing_kernel.domain.dtos import LedgerEntryKind, PaymentRecord
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import InvalidInputError
from licensing_kernel.logging_config import get_logger
from licensing_kernel.models.payment import Payment
from licensing_kernel.selectors.contract_selector import ContractSelector
from licensing_kernel.services.base import BaseService

logger = get_logger("services.payment_writer")


class PaymentWriter(BaseService):
    """Appends rows to the payment ledger."""

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._contracts = ContractSelector(session)

    def insert_payment(
        self,
        contract_id: UUID,
        signed_amount: Money,
        kind: LedgerEntryKind = LedgerEntryKind.PAYMENT,
    ) -> PaymentRecord:
        """
        Append one ledger row.

        Preconditions:
            - The caller holds the contract row lock.
            - PAYMENT rows are positive, REFUND rows negative.

        Returns:
            PaymentRecord of the inserted row.
        """
        kind = LedgerEntryKind(kind)
        if signed_amount.is_zero:
            raise InvalidInputError("Ledger entries must have a non-zero amount")
        if kind is LedgerEntryKind.PAYMENT and signed_amount.is_negative:
            raise InvalidInputError("Payments must be positive")
        if kind is LedgerEntryKind.REFUND and signed_amount.is_positive:
            raise InvalidInputError("Refunds must be negative")

        sequence = self._contracts.last_sequence(contract_id) + 1
        payment = Payment(
            contract_id=contract_id,
            amount=signed_amount.amount,
            kind=kind.value,
            sequence=sequence,
            payment_date=self._clock.now(),
            is_deleted=False,
        )
        self.session.add(payment)
        self.session.flush()

        logger.info(
            "payment_recorded" if kind is LedgerEntryKind.PAYMENT else "refund_recorded",
            extra={
                "contract_id": str(contract_id),
                "amount": str(signed_amount),
                "sequence": sequence,
            },
        )
        return PaymentRecord.from_model(payment)
