"""
PaymentReconciler -- applies a payment request to a contract.

Responsibility:
    Validates a single or installment payment against the contract's
    locked price and current ledger, appends it, and settles the contract
    when the ledger reaches the price. A payment attempt on an expired
    contract triggers renewal instead of recording money.

Architecture position:
    Kernel > Services. Drives ContractLedger (lookup, mark_paid,
    renew_expired) and PaymentWriter; applies the pure rules in
    domain.reconciliation. Flushes only.

Invariants enforced:
    - The contract row is locked (SELECT ... FOR UPDATE) for the whole
      check-then-append sequence, so concurrent payments on one contract
      serialize and sum(payments) never exceeds the price.
    - is_paid becomes true exactly when sum(payments) == price. A contract
      priced at zero settles on SINGLE(0) without a ledger row, since ledger
      rows are never zero.
    - A rejected request changes nothing.

Failure modes:
    - ClientNotFoundError, ContractNotFoundError (missing, deleted, or
      foreign contract).
    - ContractAlreadyPaidError for a settled contract.
    - PaymentAmountMismatchError, InvalidPaymentAmountError,
      PaymentExceedsOutstandingError for invalid amounts.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy.orm import Session

from licensing_kernel.domain.clock import Clock, SystemClock
from licensing_kernel.domain.dtos import (
    ContractRecord,
    LedgerEntryKind,
    PaymentRecord,
    PaymentRequest,
)
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.reconciliation import (
    ContractState,
    contract_state,
    is_settled,
    outstanding_balance,
    validate_payment,
)
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import (
    ClientNotFoundError,
    ContractAlreadyPaidError,
)
from licensing_kernel.logging_config import get_logger
from licensing_kernel.selectors.client_selector import ClientSelector
from licensing_kernel.selectors.contract_selector import ContractSelector
from licensing_kernel.services.base import BaseService
from licensing_kernel.services.contract_ledger import ContractLedger, RenewalOutcome
from licensing_kernel.services.payment_writer import PaymentWriter

logger = get_logger("services.payment_reconciler")


class PaymentStatus(str, Enum):
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    RENEWED = "renewed"


@dataclass(frozen=True)
class PaymentOutcome:
    """
    What a payment attempt did.

    PAID / PARTIALLY_PAID carry the recorded ``payment`` (None when a
    zero-priced contract was settled) and the remaining ``outstanding``.
    RENEWED carries the ``renewal`` and records no payment.
    """

    status: PaymentStatus
    contract: ContractRecord
    outstanding: Money
    payment: PaymentRecord | None = None
    renewal: RenewalOutcome | None = None


class PaymentReconciler(BaseService):
    """Validates and applies payments, renewing expired contracts."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        contract_ledger: ContractLedger | None = None,
        payment_writer: PaymentWriter | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._writer = payment_writer or PaymentWriter(session, self._clock)
        self._ledger = contract_ledger or ContractLedger(
            session, self._clock, payment_writer=self._writer
        )
        self._clients = ClientSelector(session)
        self._contracts = ContractSelector(session)

    def process_payment(
        self,
        client: ClientRef,
        contract_id: UUID,
        request: PaymentRequest,
    ) -> PaymentOutcome:
        """
        Apply ``request`` to the client's contract.

        Returns:
            PaymentOutcome with status PAID, PARTIALLY_PAID, or RENEWED.
        """
        if not self._clients.client_exists(client):
            raise ClientNotFoundError(str(client))

        contract = self._ledger.get_contract(client, contract_id, for_update=True)
        price = Money.of(contract.price)
        paid_total = self._contracts.payments_total(contract.id)
        now = self._clock.now()

        state = contract_state(
            price=price,
            paid_total=paid_total,
            is_paid=contract.is_paid,
            is_deleted=contract.is_deleted,
            end_date=contract.end_date,
            now=now,
        )

        if state is ContractState.PAID:
            raise ContractAlreadyPaidError(str(contract_id))

        if state is ContractState.EXPIRED_UNPAID:
            logger.info(
                "contract_expired_on_payment",
                extra={
                    "contract_id": str(contract_id),
                    "end_date": contract.end_date,
                    "now": now,
                },
            )
            renewal = self._ledger.renew_expired(contract)
            return PaymentOutcome(
                status=PaymentStatus.RENEWED,
                contract=renewal.new_contract,
                outstanding=renewal.new_contract.price,
                renewal=renewal,
            )

        validate_payment(contract.id, request, price, paid_total)

        # A fully discounted contract settles on SINGLE(0) with no ledger row
        payment = None
        if not request.amount.is_zero:
            payment = self._writer.insert_payment(
                contract.id, request.amount, LedgerEntryKind.PAYMENT
            )
        new_total = paid_total.add(request.amount)

        if is_settled(price, new_total):
            self._ledger.mark_paid(contract)
            status = PaymentStatus.PAID
        else:
            status = PaymentStatus.PARTIALLY_PAID

        return PaymentOutcome(
            status=status,
            contract=ContractRecord.from_model(contract),
            outstanding=price.subtract(new_total),
            payment=payment,
        )

    def outstanding_balance(self, client: ClientRef, contract_id: UUID) -> Money:
        """
        price - sum(payments) for an owned contract. Read-only.

        Raises:
            ContractNotFoundError: Missing, deleted, or not owned.
        """
        contract = self._contracts.get_contract(client, contract_id)
        return outstanding_balance(
            contract.price,
            (p.amount for p in self._contracts.list_payments(contract_id)),
        )
