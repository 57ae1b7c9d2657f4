"""
Pure domain layer.

Value objects, client identity, payment-request variants, and the pricing
and reconciliation rules, with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

Time enters only through the Clock passed in by services.
"""

from licensing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from licensing_kernel.domain.dtos import (
    ContractRecord,
    DiscountBreakdown,
    LedgerEntryKind,
    PaymentKind,
    PaymentRecord,
    PaymentRequest,
)
from licensing_kernel.domain.identity import ClientKind, ClientRef
from licensing_kernel.domain.pricing import (
    DEFAULT_RECURRING_CLIENT_BONUS,
    combine_discounts,
    locked_price,
    recurring_client_bonus,
)
from licensing_kernel.domain.reconciliation import (
    ContractState,
    contract_state,
    is_expired,
    is_settled,
    outstanding_balance,
    renewal_refund,
    validate_payment,
)
from licensing_kernel.domain.values import Money, Rate

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ContractRecord",
    "DiscountBreakdown",
    "LedgerEntryKind",
    "PaymentKind",
    "PaymentRecord",
    "PaymentRequest",
    "ClientKind",
    "ClientRef",
    "DEFAULT_RECURRING_CLIENT_BONUS",
    "combine_discounts",
    "locked_price",
    "recurring_client_bonus",
    "ContractState",
    "contract_state",
    "is_expired",
    "is_settled",
    "outstanding_balance",
    "renewal_refund",
    "validate_payment",
    "Money",
    "Rate",
]
