"""
LicensingOrchestrator tests.

Runs the reference purchase and payment flows end to end through the
public surface: every call opens and commits its own session.

Verifies:
- Status and payload of each operation
- Error kinds, codes, and messages for rejected requests
- Rejected requests leave no partial state
- Internal failures are masked behind a generic message
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from licensing_kernel.db.engine import (
    create_session_factory,
    init_engine_from_url,
    session_scope,
)
from licensing_kernel.domain.dtos import PaymentRequest
from licensing_kernel.domain.values import Money, Rate
from licensing_kernel.exceptions import ErrorKind
from licensing_kernel.models.contract import Contract
from licensing_kernel.models.payment import Payment
from licensing_kernel.services.catalog_service import CatalogService
from licensing_kernel.services.contract_ledger import ContractLedger
from licensing_kernel.services.orchestrator import (
    INTERNAL_ERROR_MESSAGE,
    LicensingOrchestrator,
    ResultStatus,
)


def _purchase(orchestrator, client, product_id, terms):
    result = orchestrator.purchase(client, product_id, **terms)
    assert result.status is ResultStatus.CREATED, result
    return result.payload.contract


def _discounted_product(session_factory, price, percentage):
    with session_scope(session_factory) as s:
        catalog = CatalogService(s)
        product = catalog.create_product("Payroll", price, "1.0", "hr")
        catalog.create_discount(
            product.id,
            "Launch",
            percentage,
            datetime(2024, 1, 1, tzinfo=timezone.utc),
            datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
    return product.id


class TestPurchase:

    def test_new_client(self, orchestrator, seed, terms):
        result = orchestrator.purchase(seed.alice, seed.finance_suite, **terms)

        assert result.is_success
        assert result.status is ResultStatus.CREATED
        assert result.payload.contract.price == Money.of("900.00")
        assert result.payload.discount.final == Rate.of("0.10")

    def test_recurring_client(self, orchestrator, seed, terms):
        _purchase(orchestrator, seed.alice, seed.office_tools, terms)
        contract = _purchase(orchestrator, seed.alice, seed.finance_suite, terms)
        assert contract.price == Money.of("850.00")

    def test_duplicate(self, orchestrator, seed, terms):
        _purchase(orchestrator, seed.alice, seed.finance_suite, terms)
        result = orchestrator.purchase(seed.alice, seed.finance_suite, **terms)

        assert result.status is ResultStatus.CONFLICT
        assert result.error_kind is ErrorKind.CONFLICT
        assert result.code == "DUPLICATE_CONTRACT"
        assert result.payload is None

    def test_unknown_client(self, orchestrator, seed, terms):
        result = orchestrator.purchase(seed.ghost, seed.finance_suite, **terms)
        assert result.status is ResultStatus.NOT_FOUND
        assert result.message == "Client does not exist"

    def test_unknown_product(self, orchestrator, seed, terms):
        result = orchestrator.purchase(seed.alice, uuid4(), **terms)
        assert result.status is ResultStatus.NOT_FOUND
        assert result.code == "PRODUCT_NOT_FOUND"

    def test_bad_terms(self, orchestrator, seed, terms):
        result = orchestrator.purchase(
            seed.alice, seed.finance_suite, **dict(terms, years_supported=9)
        )
        assert result.status is ResultStatus.INVALID_INPUT
        assert result.error_kind is ErrorKind.INVALID_INPUT

    def test_settings_drive_limits(self, session_factory, clock, seed, terms):
        from licensing_config import EngineSettings

        settings = EngineSettings(
            database_url="sqlite://",
            recurring_client_bonus=Decimal("0.20"),
            max_years_supported=10,
        )
        orchestrator = LicensingOrchestrator.from_settings(session_factory, settings, clock)
        _purchase(orchestrator, seed.alice, seed.office_tools, dict(terms, years_supported=9))
        contract = _purchase(orchestrator, seed.alice, seed.finance_suite, terms)
        assert contract.price == Money.of("700.00")


class TestQuote:

    def test_quote_creates_nothing(self, orchestrator, session_factory, seed):
        result = orchestrator.quote(seed.alice, seed.finance_suite)

        assert result.status is ResultStatus.QUOTED
        assert result.payload.list_price == Money.of("1000.00")
        assert result.payload.price == Money.of("900.00")
        with session_scope(session_factory) as s:
            assert s.execute(select(func.count(Contract.id))).scalar_one() == 0

    def test_quote_for_unknown_product(self, orchestrator, seed):
        result = orchestrator.quote(seed.alice, uuid4())
        assert result.status is ResultStatus.NOT_FOUND


class TestPay:

    def test_single_payment(self, orchestrator, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        result = orchestrator.pay(seed.alice, contract.id, PaymentRequest.single("1000.00"))

        assert result.status is ResultStatus.PAID
        assert result.payload.contract.is_paid

        found = orchestrator.get_contract(seed.alice, contract.id)
        assert found.status is ResultStatus.FOUND
        assert found.payload.is_paid
        assert found.payload.is_signed

    def test_fractional_price_is_stored_and_paid_as_quoted(
        self, orchestrator, session_factory, seed, terms
    ):
        product_id = _discounted_product(session_factory, "100.000000001", "0.12345")
        contract = _purchase(orchestrator, seed.bob, product_id, terms)
        assert contract.price == Money.of("87.655000001")

        stored = orchestrator.get_contract(seed.bob, contract.id).payload
        assert stored.price == contract.price

        result = orchestrator.pay(
            seed.bob, contract.id, PaymentRequest.single(str(contract.price.amount))
        )
        assert result.status is ResultStatus.PAID

    def test_fully_discounted_contract_settles_on_zero_payment(
        self, orchestrator, session_factory, seed, terms
    ):
        product_id = _discounted_product(session_factory, "500.00", "1")
        contract = _purchase(orchestrator, seed.bob, product_id, terms)
        assert contract.price.is_zero

        result = orchestrator.pay(seed.bob, contract.id, PaymentRequest.single("0"))

        assert result.status is ResultStatus.PAID
        assert result.payload.payment is None
        assert orchestrator.get_contract(seed.bob, contract.id).payload.is_paid
        assert orchestrator.outstanding(seed.bob, contract.id).payload.is_zero
        with session_scope(session_factory) as s:
            rows = s.execute(
                select(func.count())
                .select_from(Payment)
                .where(Payment.contract_id == contract.id)
            ).scalar_one()
            assert rows == 0

    def test_mismatched_single_payment(self, orchestrator, session_factory, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        result = orchestrator.pay(seed.alice, contract.id, PaymentRequest.single("500.00"))

        assert result.status is ResultStatus.INVALID_INPUT
        assert result.message == "Amount does not match contract price"
        assert orchestrator.outstanding(seed.alice, contract.id).payload == Money.of("1000")
        assert not orchestrator.get_contract(seed.alice, contract.id).payload.is_paid

    def test_installments(self, orchestrator, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.education_pack, terms)
        statuses = [
            orchestrator.pay(
                seed.alice, contract.id, PaymentRequest.installment("100.00")
            ).status
            for _ in range(12)
        ]
        assert statuses == [ResultStatus.PARTIALLY_PAID] * 11 + [ResultStatus.PAID]
        assert orchestrator.outstanding(seed.alice, contract.id).payload.is_zero

    def test_overpayment(self, orchestrator, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        result = orchestrator.pay(
            seed.alice, contract.id, PaymentRequest.installment("1000.01")
        )
        assert result.status is ResultStatus.INVALID_INPUT
        assert result.message == "Amount exceeds outstanding payments"

    def test_already_paid(self, orchestrator, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        orchestrator.pay(seed.alice, contract.id, PaymentRequest.single("1000"))
        result = orchestrator.pay(seed.alice, contract.id, PaymentRequest.installment("1"))
        assert result.status is ResultStatus.CONFLICT
        assert result.code == "CONTRACT_ALREADY_PAID"

    def test_expired_contract_renews(
        self, orchestrator, session_factory, clock, seed, terms
    ):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        orchestrator.pay(seed.alice, contract.id, PaymentRequest.installment("400.00"))
        clock.advance(days=366)

        result = orchestrator.pay(
            seed.alice, contract.id, PaymentRequest.installment("600.00")
        )

        assert result.status is ResultStatus.RENEWED
        new = result.payload.contract
        assert new.price == Money.of("1000.00")
        assert not new.is_paid
        assert result.payload.renewal.refund == Money.of("-400.00")

        assert orchestrator.get_contract(seed.alice, contract.id).status is ResultStatus.NOT_FOUND
        assert orchestrator.get_contract(seed.alice, new.id).status is ResultStatus.FOUND

        with session_scope(session_factory) as s:
            old = s.get(Contract, contract.id)
            assert old.is_deleted
            total = sum(
                s.execute(
                    select(Payment.amount).where(Payment.contract_id == contract.id)
                ).scalars(),
                Decimal("0"),
            )
            assert total == 0

    def test_foreign_contract(self, orchestrator, seed, terms):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        result = orchestrator.pay(seed.bob, contract.id, PaymentRequest.single("1000"))
        assert result.status is ResultStatus.NOT_FOUND
        assert result.message == "Contract does not exist"


class TestInternalFailures:

    def test_missing_schema_is_masked(self, tmp_path, clock, seed, terms):
        empty = init_engine_from_url(f"sqlite:///{tmp_path / 'empty.db'}")
        try:
            orchestrator = LicensingOrchestrator(create_session_factory(empty), clock=clock)
            result = orchestrator.purchase(seed.alice, seed.finance_suite, **terms)
        finally:
            empty.dispose()

        assert result.status is ResultStatus.INTERNAL
        assert result.error_kind is ErrorKind.INTERNAL
        assert result.message == INTERNAL_ERROR_MESSAGE
        assert "no such table" not in result.message

    def test_failed_renewal_rolls_back(
        self, orchestrator, session_factory, clock, seed, terms, monkeypatch
    ):
        contract = _purchase(orchestrator, seed.alice, seed.analytics, terms)
        orchestrator.pay(seed.alice, contract.id, PaymentRequest.installment("400.00"))
        clock.advance(days=366)

        def boom(*args, **kwargs):
            raise RuntimeError("insert failed")

        with monkeypatch.context() as m:
            m.setattr(ContractLedger, "insert_contract", boom)
            result = orchestrator.pay(
                seed.alice, contract.id, PaymentRequest.installment("600.00")
            )

        assert result.status is ResultStatus.INTERNAL
        assert result.message == INTERNAL_ERROR_MESSAGE

        found = orchestrator.get_contract(seed.alice, contract.id)
        assert found.status is ResultStatus.FOUND
        assert orchestrator.outstanding(seed.alice, contract.id).payload == Money.of("600")
        with session_scope(session_factory) as s:
            assert not s.get(Contract, contract.id).is_deleted
            amounts = s.execute(
                select(Payment.amount).where(Payment.contract_id == contract.id)
            ).scalars().all()
            assert amounts == [Decimal("400.00")]

    def test_unexpected_exception_is_masked(self, orchestrator, seed, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(
            "licensing_kernel.services.orchestrator.locked_price", boom
        )
        result = orchestrator.quote(seed.alice, seed.finance_suite)
        assert result.status is ResultStatus.INTERNAL
        assert result.code == "INTERNAL_ERROR"
        assert result.message == INTERNAL_ERROR_MESSAGE


@pytest.mark.parametrize("days", [1, 365])
def test_purchase_window_lengths(orchestrator, seed, terms, days):
    window = dict(terms, end_date=terms["start_date"] + timedelta(days=days))
    contract = _purchase(orchestrator, seed.acme, seed.office_tools, window)
    assert contract.end_date - contract.start_date == timedelta(days=days)
