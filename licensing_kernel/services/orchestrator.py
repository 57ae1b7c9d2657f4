"""
LicensingOrchestrator -- the public surface of the licensing engine.

Responsibility:
    Runs each engine operation (purchase, pay, quote, get_contract,
    outstanding) in its own session and transaction, and turns every
    outcome into an EngineResult. Kernel exceptions never escape; they are
    mapped onto failure statuses by their ErrorKind.

Architecture position:
    Kernel > Services -- outermost layer of the kernel. Built from a
    session factory (the explicitly passed store handle), a Clock and
    EngineSettings. A transport layer maps EngineResult to its own
    vocabulary.

Invariants enforced:
    - One session per operation, checked out from the factory and closed
      on every exit path.
    - Commit on success, rollback on any failure (session_scope), so a
      rejected payment or a failed renewal leaves no partial state.
    - Validation outcomes are logged at INFO and returned verbatim.
      Internal failures are logged at ERROR with the traceback and returned
      with a generic message.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from uuid import UUID, uuid4

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from licensing_kernel.db.engine import session_scope
from licensing_kernel.db.immutability import register_immutability_listeners
from licensing_kernel.domain.clock import Clock, SystemClock
from licensing_kernel.domain.dtos import DiscountBreakdown, PaymentRequest
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.pricing import DEFAULT_RECURRING_CLIENT_BONUS, locked_price
from licensing_kernel.domain.values import Money, Rate
from licensing_kernel.exceptions import (
    ClientNotFoundError,
    ErrorKind,
    LicensingKernelError,
    ProductNotFoundError,
    StoreUnavailableError,
)
from licensing_kernel.logging_config import LogContext, get_logger
from licensing_kernel.selectors.catalog_selector import CatalogSelector
from licensing_kernel.selectors.client_selector import ClientSelector
from licensing_kernel.selectors.contract_selector import ContractSelector
from licensing_kernel.services.contract_ledger import (
    DEFAULT_MAX_YEARS_SUPPORTED,
    ContractLedger,
)
from licensing_kernel.services.discount_resolver import DiscountResolver
from licensing_kernel.services.payment_reconciler import (
    PaymentReconciler,
    PaymentStatus,
)
from licensing_kernel.services.payment_writer import PaymentWriter

logger = get_logger("services.orchestrator")

INTERNAL_ERROR_MESSAGE = "An internal error occurred"


class ResultStatus(str, Enum):
    """Status of an engine operation."""

    CREATED = "created"
    QUOTED = "quoted"
    FOUND = "found"
    PAID = "paid"
    PARTIALLY_PAID = "partially_paid"
    RENEWED = "renewed"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


_FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: ResultStatus.NOT_FOUND,
    ErrorKind.CONFLICT: ResultStatus.CONFLICT,
    ErrorKind.INVALID_INPUT: ResultStatus.INVALID_INPUT,
    ErrorKind.INTERNAL: ResultStatus.INTERNAL,
}

_PAYMENT_STATUS = {
    PaymentStatus.PAID: ResultStatus.PAID,
    PaymentStatus.PARTIALLY_PAID: ResultStatus.PARTIALLY_PAID,
    PaymentStatus.RENEWED: ResultStatus.RENEWED,
}


@dataclass(frozen=True)
class EngineResult:
    """Result of an engine operation."""

    status: ResultStatus
    payload: Any = None
    error_kind: ErrorKind | None = None
    code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.error_kind is None

    @classmethod
    def ok(cls, status: ResultStatus, payload: Any) -> EngineResult:
        return cls(status=status, payload=payload)

    @classmethod
    def failure(cls, error: LicensingKernelError) -> EngineResult:
        message = (
            INTERNAL_ERROR_MESSAGE if error.kind is ErrorKind.INTERNAL else str(error)
        )
        return cls(
            status=_FAILURE_STATUS[error.kind],
            error_kind=error.kind,
            code=error.code,
            message=message,
        )


@dataclass(frozen=True)
class Quote:
    """Price a client would lock in if they purchased now."""

    product_id: UUID
    list_price: Money
    discount: DiscountBreakdown
    price: Money


@dataclass
class _Components:
    session: Session
    resolver: DiscountResolver
    writer: PaymentWriter
    ledger: ContractLedger
    reconciler: PaymentReconciler
    catalog: CatalogSelector = field(init=False)
    clients: ClientSelector = field(init=False)
    contracts: ContractSelector = field(init=False)

    def __post_init__(self) -> None:
        self.catalog = CatalogSelector(self.session)
        self.clients = ClientSelector(self.session)
        self.contracts = ContractSelector(self.session)


class LicensingOrchestrator:
    """
    Entry point for every engine operation.

    Contract:
        Every public method returns an EngineResult. Only BaseExceptions
        that are not Exceptions (KeyboardInterrupt, cancellation) propagate,
        after the transaction has been rolled back.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        recurring_client_bonus: Rate = DEFAULT_RECURRING_CLIENT_BONUS,
        max_years_supported: int = DEFAULT_MAX_YEARS_SUPPORTED,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._bonus = recurring_client_bonus
        self._max_years = max_years_supported
        register_immutability_listeners()

    @classmethod
    def from_settings(
        cls,
        session_factory: sessionmaker[Session],
        settings,
        clock: Clock | None = None,
    ) -> LicensingOrchestrator:
        """Build from an EngineSettings instance (licensing_config)."""
        return cls(
            session_factory,
            clock=clock,
            recurring_client_bonus=Rate.of(settings.recurring_client_bonus),
            max_years_supported=settings.max_years_supported,
        )

    def _components(self, session: Session) -> _Components:
        resolver = DiscountResolver(session, self._clock, self._bonus)
        writer = PaymentWriter(session, self._clock)
        ledger = ContractLedger(
            session,
            self._clock,
            discount_resolver=resolver,
            payment_writer=writer,
            max_years_supported=self._max_years,
        )
        reconciler = PaymentReconciler(
            session, self._clock, contract_ledger=ledger, payment_writer=writer
        )
        return _Components(
            session=session,
            resolver=resolver,
            writer=writer,
            ledger=ledger,
            reconciler=reconciler,
        )

    def _run(
        self,
        operation: str,
        client: ClientRef,
        work: Callable[[_Components], EngineResult],
        contract_id: UUID | None = None,
    ) -> EngineResult:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            operation=operation,
            client_ref=str(client),
            contract_id=str(contract_id) if contract_id else None,
        ):
            t0 = time.monotonic()
            try:
                with session_scope(self._session_factory) as session:
                    result = work(self._components(session))
            except LicensingKernelError as e:
                if e.kind is ErrorKind.INTERNAL:
                    logger.error(
                        f"{operation}_failed",
                        extra={"code": e.code},
                        exc_info=True,
                    )
                else:
                    logger.info(
                        f"{operation}_rejected",
                        extra={"code": e.code, "reason": str(e)},
                    )
                return EngineResult.failure(e)
            except OperationalError:
                logger.error(
                    f"{operation}_failed",
                    extra={"code": StoreUnavailableError.code},
                    exc_info=True,
                )
                return EngineResult.failure(StoreUnavailableError(operation))
            except Exception:
                logger.error(
                    f"{operation}_failed",
                    extra={"code": "INTERNAL_ERROR"},
                    exc_info=True,
                )
                return EngineResult(
                    status=ResultStatus.INTERNAL,
                    error_kind=ErrorKind.INTERNAL,
                    code="INTERNAL_ERROR",
                    message=INTERNAL_ERROR_MESSAGE,
                )

            logger.info(
                f"{operation}_completed",
                extra={
                    "status": result.status.value,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def purchase(
        self,
        client: ClientRef,
        product_id: UUID,
        start_date,
        end_date,
        years_supported: int,
    ) -> EngineResult:
        """Create a contract. Payload: CreatedContract."""

        def work(c: _Components) -> EngineResult:
            created = c.ledger.create_contract(
                client, product_id, start_date, end_date, years_supported
            )
            return EngineResult.ok(ResultStatus.CREATED, created)

        return self._run("purchase", client, work)

    def pay(
        self,
        client: ClientRef,
        contract_id: UUID,
        request: PaymentRequest,
    ) -> EngineResult:
        """Apply a payment. Payload: PaymentOutcome."""

        def work(c: _Components) -> EngineResult:
            outcome = c.reconciler.process_payment(client, contract_id, request)
            return EngineResult.ok(_PAYMENT_STATUS[outcome.status], outcome)

        return self._run("payment", client, work, contract_id=contract_id)

    def quote(self, client: ClientRef, product_id: UUID) -> EngineResult:
        """Price a purchase without creating anything. Payload: Quote."""

        def work(c: _Components) -> EngineResult:
            if not c.clients.client_exists(client):
                raise ClientNotFoundError(str(client))
            if not c.catalog.product_exists(product_id):
                raise ProductNotFoundError(str(product_id))
            list_price = c.catalog.get_product_price(product_id)
            breakdown = c.resolver.resolve(product_id, client)
            return EngineResult.ok(
                ResultStatus.QUOTED,
                Quote(
                    product_id=product_id,
                    list_price=list_price,
                    discount=breakdown,
                    price=locked_price(list_price, breakdown.final),
                ),
            )

        return self._run("quote", client, work)

    def get_contract(self, client: ClientRef, contract_id: UUID) -> EngineResult:
        """Owned contract lookup. Payload: ContractRecord."""

        def work(c: _Components) -> EngineResult:
            return EngineResult.ok(
                ResultStatus.FOUND, c.contracts.get_contract(client, contract_id)
            )

        return self._run("get_contract", client, work, contract_id=contract_id)

    def outstanding(self, client: ClientRef, contract_id: UUID) -> EngineResult:
        """Outstanding balance of an owned contract. Payload: Money."""

        def work(c: _Components) -> EngineResult:
            return EngineResult.ok(
                ResultStatus.FOUND,
                c.reconciler.outstanding_balance(client, contract_id),
            )

        return self._run("outstanding", client, work, contract_id=contract_id)
