"""
ContractLedger -- contract creation, ownership-checked lookup, and renewal.

Responsibility:
    Creates contracts with a locked price, returns contracts only to the
    client that owns them, and replaces an expired unpaid contract with a
    fresh one through the refund / soft-delete / re-create sequence.

Architecture position:
    Kernel > Services. Uses DiscountResolver for pricing, PaymentWriter for
    the renewal refund, and ContractSelector/CatalogSelector/ClientSelector
    for reads. Flushes only; the orchestrator owns the transaction.

Invariants enforced:
    - At most one non-deleted contract per (client, product). Checked up
      front and backed by the partial unique index; a race that slips past
      the check surfaces as IntegrityError at flush and is translated into
      DuplicateContractError.
    - price = catalog price * (1 - final discount), computed once here and
      never again.
    - Renewal leaves the old ledger summing to exactly zero, the old
      contract soft-deleted, and a new unpaid contract with identical terms
      pointing back via renewed_from_id. Old is deleted before the new row
      is inserted; the partial unique index would reject the reverse order.

Failure modes:
    - ClientNotFoundError / ProductNotFoundError for unknown references.
    - DuplicateContractError when the pair already has an active contract.
    - InvalidContractTermsError for an empty or inverted window, a naive
      datetime, or years_supported outside [1, max_years_supported].
    - ContractNotFoundError from get_contract() for a missing, deleted, or
      foreign contract.
    - LedgerInconsistencyError if the old ledger does not net to zero after
      the refund.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from licensing_kernel.domain.clock import Clock, SystemClock
from licensing_kernel.domain.dtos import (
    ContractRecord,
    DiscountBreakdown,
    LedgerEntryKind,
)
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.pricing import locked_price
from licensing_kernel.domain.reconciliation import renewal_refund
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import (
    ClientNotFoundError,
    DuplicateContractError,
    InvalidContractTermsError,
    LedgerInconsistencyError,
    ProductNotFoundError,
)
from licensing_kernel.logging_config import get_logger
from licensing_kernel.models.contract import Contract
from licensing_kernel.selectors.catalog_selector import CatalogSelector
from licensing_kernel.selectors.client_selector import ClientSelector
from licensing_kernel.selectors.contract_selector import ContractSelector
from licensing_kernel.services.base import BaseService
from licensing_kernel.services.discount_resolver import DiscountResolver
from licensing_kernel.services.payment_writer import PaymentWriter

logger = get_logger("services.contract_ledger")

DEFAULT_MAX_YEARS_SUPPORTED = 3


@dataclass(frozen=True)
class RenewalOutcome:
    """
    Result of replacing an expired contract.

    ``refund`` is the signed refund row written to the old ledger (zero when
    nothing had been paid). ``outstanding`` is what was still owed on the old
    contract at the moment of renewal.
    """

    old_contract: ContractRecord
    new_contract: ContractRecord
    refund: Money
    outstanding: Money


@dataclass(frozen=True)
class CreatedContract:
    """A new contract together with the discount that priced it."""

    contract: ContractRecord
    list_price: Money
    discount: DiscountBreakdown


class ContractLedger(BaseService):
    """Lifecycle of contract rows."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        discount_resolver: DiscountResolver | None = None,
        payment_writer: PaymentWriter | None = None,
        max_years_supported: int = DEFAULT_MAX_YEARS_SUPPORTED,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._resolver = discount_resolver or DiscountResolver(session, self._clock)
        self._payments = payment_writer or PaymentWriter(session, self._clock)
        self._max_years = max_years_supported
        self._catalog = CatalogSelector(session)
        self._clients = ClientSelector(session)
        self._contracts = ContractSelector(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _validate_terms(
        self,
        start_date: datetime,
        end_date: datetime,
        years_supported: int,
    ) -> None:
        for name, value in (("start_date", start_date), ("end_date", end_date)):
            if not isinstance(value, datetime):
                raise InvalidContractTermsError(f"{name} must be a datetime")
            if value.tzinfo is None or value.utcoffset() is None:
                raise InvalidContractTermsError(f"{name} must be timezone-aware")
        if start_date >= end_date:
            raise InvalidContractTermsError("start_date must be before end_date")
        if isinstance(years_supported, bool) or not isinstance(years_supported, int):
            raise InvalidContractTermsError("years_supported must be an integer")
        if not 1 <= years_supported <= self._max_years:
            raise InvalidContractTermsError(
                f"years_supported must be between 1 and {self._max_years}"
            )

    def create_contract(
        self,
        client: ClientRef,
        product_id: UUID,
        start_date: datetime,
        end_date: datetime,
        years_supported: int,
    ) -> CreatedContract:
        """
        Create a contract with a locked price.

        Postconditions:
            - One new row with is_signed, is_paid, is_deleted all false.
            - price = catalog price * (1 - resolved discount).

        Raises:
            InvalidContractTermsError: Bad window or years_supported.
            ClientNotFoundError: Unknown or deleted client.
            ProductNotFoundError: Unknown or deleted product.
            DuplicateContractError: Active contract already exists.
        """
        self._validate_terms(start_date, end_date, years_supported)

        if not self._clients.client_exists(client):
            raise ClientNotFoundError(str(client))
        if not self._catalog.product_exists(product_id):
            raise ProductNotFoundError(str(product_id))
        if self._contracts.contract_exists_for(client, product_id):
            raise DuplicateContractError(str(client), str(product_id))

        list_price = self._catalog.get_product_price(product_id)
        breakdown = self._resolver.resolve(product_id, client)
        price = locked_price(list_price, breakdown.final)

        contract = self.insert_contract(
            client=client,
            product_id=product_id,
            price=price,
            start_date=start_date,
            end_date=end_date,
            years_supported=years_supported,
        )

        logger.info(
            "contract_created",
            extra={
                "contract_id": str(contract.id),
                "client_ref": str(client),
                "product_id": str(product_id),
                "list_price": str(list_price),
                "discount": str(breakdown.final),
                "price": str(price),
            },
        )
        return CreatedContract(
            contract=ContractRecord.from_model(contract),
            list_price=list_price,
            discount=breakdown,
        )

    def insert_contract(
        self,
        client: ClientRef,
        product_id: UUID,
        price: Money,
        start_date: datetime,
        end_date: datetime,
        years_supported: int,
        renewed_from_id: UUID | None = None,
    ) -> Contract:
        """
        Insert a contract row inside a savepoint.

        Raises:
            InvalidInputError: Price finer than the money scale.
            DuplicateContractError: The partial unique index rejected the
                row because a concurrent transaction committed first.
        """
        price.require_storable()
        contract = Contract(
            client_kind=client.kind.value,
            client_key=client.natural_key,
            product_id=product_id,
            price=price.amount,
            start_date=start_date,
            end_date=end_date,
            years_supported=years_supported,
            is_signed=False,
            is_paid=False,
            is_deleted=False,
            renewed_from_id=renewed_from_id,
        )

        savepoint = self.session.begin_nested()
        try:
            self.session.add(contract)
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            if self._contracts.contract_exists_for(client, product_id):
                logger.info(
                    "contract_insert_conflict",
                    extra={
                        "client_ref": str(client),
                        "product_id": str(product_id),
                    },
                )
                raise DuplicateContractError(str(client), str(product_id)) from None
            raise
        return contract

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_contract(
        self,
        client: ClientRef,
        contract_id: UUID,
        for_update: bool = False,
    ) -> Contract:
        """
        Owned, non-deleted contract row (locked when ``for_update``).

        Raises:
            ContractNotFoundError: Missing, deleted, or owned by another client.
        """
        return self._contracts.get_contract_row(client, contract_id, for_update)

    # ------------------------------------------------------------------
    # State changes
    # ------------------------------------------------------------------

    def soft_delete_contract(self, contract: Contract) -> None:
        contract.is_deleted = True
        self.session.flush()

    def mark_paid(self, contract: Contract) -> None:
        """Settle a contract: paid and signed move to true together."""
        contract.is_paid = True
        contract.is_signed = True
        self.session.flush()
        logger.info(
            "contract_paid",
            extra={"contract_id": str(contract.id), "price": str(contract.price)},
        )

    def renew_expired(self, contract: Contract) -> RenewalOutcome:
        """
        Replace an expired, unpaid contract.

        Preconditions:
            - ``contract`` is the locked, non-deleted row.

        Postconditions (all in the caller's transaction):
            - A refund row of -(amount paid) is appended when anything was paid.
            - The old ledger sums to zero.
            - The old contract is soft-deleted.
            - A new unpaid contract exists with the same client, product,
              price, dates, and years_supported, and renewed_from_id = old.id.

        Raises:
            LedgerInconsistencyError: Old ledger does not net to zero.
        """
        old_id = contract.id
        price = Money.of(contract.price)
        client = ClientRef(kind=contract.client_kind, natural_key=contract.client_key)

        paid_total = self._contracts.payments_total(old_id)
        outstanding = price.subtract(paid_total)
        refund = renewal_refund(paid_total)

        if not refund.is_zero:
            self._payments.insert_payment(old_id, refund, LedgerEntryKind.REFUND)

        remaining = self._contracts.payments_total(old_id)
        if not remaining.is_zero:
            raise LedgerInconsistencyError(
                str(old_id), f"ledger sums to {remaining} after refund"
            )

        self.soft_delete_contract(contract)

        new_contract = self.insert_contract(
            client=client,
            product_id=contract.product_id,
            price=price,
            start_date=contract.start_date,
            end_date=contract.end_date,
            years_supported=contract.years_supported,
            renewed_from_id=old_id,
        )

        logger.info(
            "contract_renewed",
            extra={
                "old_contract_id": str(old_id),
                "new_contract_id": str(new_contract.id),
                "refund": str(refund),
                "outstanding": str(outstanding),
            },
        )
        return RenewalOutcome(
            old_contract=ContractRecord.from_model(contract),
            new_contract=ContractRecord.from_model(new_contract),
            refund=refund,
            outstanding=outstanding,
        )
