"""
ContractLedger tests.

Verifies:
- Contract creation: locked price, initial flags, validation of terms
- Existence checks for client and product
- One active contract per (client, product), enforced up front and by the
  partial unique index
- Ownership-checked lookup
- Price lock survives later catalog changes
- Renewal: refund, soft delete, identical replacement
- Append-only listeners on contracts and payments
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from licensing_kernel.domain.dtos import LedgerEntryKind
from licensing_kernel.domain.identity import ClientRef
from licensing_kernel.domain.values import Money
from licensing_kernel.exceptions import (
    ClientNotFoundError,
    ContractNotFoundError,
    DuplicateContractError,
    ImmutabilityViolationError,
    InvalidContractTermsError,
    ProductNotFoundError,
)
from licensing_kernel.models.contract import Contract
from licensing_kernel.models.payment import Payment
from licensing_kernel.selectors.contract_selector import ContractSelector
from licensing_kernel.services.catalog_service import CatalogService
from licensing_kernel.services.contract_ledger import ContractLedger
from licensing_kernel.services.payment_writer import PaymentWriter


@pytest.fixture
def ledger(session, clock):
    return ContractLedger(session, clock)


class TestCreateContract:

    def test_creates_unpaid_contract(self, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        contract = created.contract

        assert contract.client == seed.alice
        assert contract.product_id == seed.finance_suite
        assert contract.price == Money.of("900.00")
        assert contract.years_supported == 2
        assert not contract.is_signed
        assert not contract.is_paid
        assert not contract.is_deleted
        assert contract.renewed_from_id is None
        assert created.list_price == Money.of("1000.00")

    def test_company_client(self, ledger, seed, terms):
        created = ledger.create_contract(seed.acme, seed.office_tools, **terms)
        assert created.contract.client == seed.acme
        assert created.contract.price == Money.of("500.00")

    def test_unknown_client(self, ledger, seed, terms):
        with pytest.raises(ClientNotFoundError):
            ledger.create_contract(seed.ghost, seed.finance_suite, **terms)

    def test_unknown_product(self, ledger, seed, terms):
        with pytest.raises(ProductNotFoundError):
            ledger.create_contract(seed.alice, uuid4(), **terms)

    def test_duplicate_active_contract(self, ledger, seed, terms):
        ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        with pytest.raises(DuplicateContractError) as exc:
            ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        assert exc.value.product_id == str(seed.finance_suite)

    def test_same_product_for_different_clients(self, ledger, seed, terms):
        ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        ledger.create_contract(seed.bob, seed.finance_suite, **terms)

    def test_inverted_window(self, ledger, seed, terms):
        bad = dict(terms, end_date=terms["start_date"] - timedelta(days=1))
        with pytest.raises(InvalidContractTermsError):
            ledger.create_contract(seed.alice, seed.finance_suite, **bad)

    def test_empty_window(self, ledger, seed, terms):
        bad = dict(terms, end_date=terms["start_date"])
        with pytest.raises(InvalidContractTermsError):
            ledger.create_contract(seed.alice, seed.finance_suite, **bad)

    def test_naive_dates_rejected(self, ledger, seed, terms):
        bad = dict(terms, start_date=datetime(2024, 6, 1))
        with pytest.raises(InvalidContractTermsError):
            ledger.create_contract(seed.alice, seed.finance_suite, **bad)

    @pytest.mark.parametrize("years", [0, 4, -1])
    def test_years_supported_bounds(self, ledger, seed, terms, years):
        bad = dict(terms, years_supported=years)
        with pytest.raises(InvalidContractTermsError):
            ledger.create_contract(seed.alice, seed.finance_suite, **bad)

    def test_configured_max_years(self, session, clock, seed, terms):
        ledger = ContractLedger(session, clock, max_years_supported=5)
        created = ledger.create_contract(
            seed.alice, seed.finance_suite, **dict(terms, years_supported=5)
        )
        assert created.contract.years_supported == 5

    def test_index_rejects_duplicate_that_skips_the_check(self, session, ledger, seed, terms):
        ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        with pytest.raises(DuplicateContractError):
            ledger.insert_contract(
                client=seed.alice,
                product_id=seed.finance_suite,
                price=Money.of("1"),
                **terms,
            )
        # The savepoint kept the first contract
        assert ContractSelector(session).contract_exists_for(seed.alice, seed.finance_suite)


class TestPriceLock:
    """Catalog changes never reach an existing contract."""

    def test_price_change_and_discount_deactivation(self, session, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        catalog = CatalogService(session)

        catalog.update_product_price(seed.finance_suite, Decimal("5000.00"))
        session.expire_all()

        contract = ContractSelector(session).get_contract(seed.alice, created.contract.id)
        assert contract.price == Money.of("900.00")

    def test_locked_price_cannot_be_edited(self, session, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        row = session.get(Contract, created.contract.id)
        row.price = Decimal("1.00")
        with pytest.raises(ImmutabilityViolationError):
            session.flush()


class TestGetContract:

    def test_owner_can_read(self, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        row = ledger.get_contract(seed.alice, created.contract.id)
        assert row.id == created.contract.id

    def test_other_client_cannot_read(self, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        with pytest.raises(ContractNotFoundError):
            ledger.get_contract(seed.bob, created.contract.id)

    def test_same_key_different_kind_cannot_read(self, ledger, seed, terms):
        created = ledger.create_contract(seed.acme, seed.finance_suite, **terms)
        impostor = ClientRef.individual(seed.acme.natural_key)
        with pytest.raises(ContractNotFoundError):
            ledger.get_contract(impostor, created.contract.id)

    def test_unknown_contract(self, ledger, seed):
        with pytest.raises(ContractNotFoundError) as exc:
            ledger.get_contract(seed.alice, uuid4())
        assert str(exc.value) == "Contract does not exist"

    def test_deleted_contract_is_invisible(self, session, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.finance_suite, **terms)
        ledger.soft_delete_contract(session.get(Contract, created.contract.id))
        with pytest.raises(ContractNotFoundError):
            ledger.get_contract(seed.alice, created.contract.id)


class TestRenewExpired:

    def _expired_with_payment(self, session, ledger, clock, seed, terms, paid: str):
        created = ledger.create_contract(seed.alice, seed.analytics, **terms)
        if paid:
            PaymentWriter(session, clock).insert_payment(
                created.contract.id, Money.of(paid), LedgerEntryKind.PAYMENT
            )
        clock.advance(days=366)
        return session.get(Contract, created.contract.id)

    def test_refund_delete_and_recreate(self, session, ledger, clock, seed, terms):
        old = self._expired_with_payment(session, ledger, clock, seed, terms, "400.00")

        outcome = ledger.renew_expired(old)

        assert outcome.refund == Money.of("-400.00")
        assert outcome.outstanding == Money.of("600.00")
        assert outcome.old_contract.is_deleted
        new = outcome.new_contract
        assert new.id != old.id
        assert new.renewed_from_id == old.id
        assert new.client == seed.alice
        assert new.product_id == seed.analytics
        assert new.price == Money.of("1000.00")
        assert new.start_date == terms["start_date"]
        assert new.end_date == terms["end_date"]
        assert new.years_supported == terms["years_supported"]
        assert not new.is_paid
        assert not new.is_deleted

        selector = ContractSelector(session)
        assert selector.payments_total(old.id).is_zero
        ledger_rows = selector.list_payments(old.id)
        assert [p.kind for p in ledger_rows] == [
            LedgerEntryKind.PAYMENT,
            LedgerEntryKind.REFUND,
        ]
        assert [p.sequence for p in ledger_rows] == [1, 2]
        assert selector.list_payments(new.id) == []

    def test_nothing_paid_writes_no_refund(self, session, ledger, clock, seed, terms):
        old = self._expired_with_payment(session, ledger, clock, seed, terms, "")
        outcome = ledger.renew_expired(old)

        assert outcome.refund.is_zero
        assert outcome.outstanding == Money.of("1000.00")
        assert ContractSelector(session).list_payments(old.id) == []

    def test_only_replacement_is_active(self, session, ledger, clock, seed, terms):
        old = self._expired_with_payment(session, ledger, clock, seed, terms, "100")
        outcome = ledger.renew_expired(old)

        active = session.execute(
            select(Contract).where(
                Contract.client_key == seed.alice.natural_key,
                Contract.product_id == seed.analytics,
                Contract.is_deleted == False,  # noqa: E712
            )
        ).scalars().all()
        assert [c.id for c in active] == [outcome.new_contract.id]


class TestAppendOnly:

    def test_payment_cannot_be_edited(self, session, ledger, clock, seed, terms):
        created = ledger.create_contract(seed.alice, seed.analytics, **terms)
        record = PaymentWriter(session, clock).insert_payment(
            created.contract.id, Money.of("100"), LedgerEntryKind.PAYMENT
        )
        row = session.get(Payment, record.id)
        row.amount = Decimal("1")
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_payment_cannot_be_deleted(self, session, ledger, clock, seed, terms):
        created = ledger.create_contract(seed.alice, seed.analytics, **terms)
        record = PaymentWriter(session, clock).insert_payment(
            created.contract.id, Money.of("100"), LedgerEntryKind.PAYMENT
        )
        session.delete(session.get(Payment, record.id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_paid_contract_cannot_become_unpaid(self, session, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.analytics, **terms)
        row = session.get(Contract, created.contract.id)
        ledger.mark_paid(row)
        row.is_paid = False
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_contract_cannot_be_deleted(self, session, ledger, seed, terms):
        created = ledger.create_contract(seed.alice, seed.analytics, **terms)
        session.delete(session.get(Contract, created.contract.id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
