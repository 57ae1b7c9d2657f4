"""
Typed Exception Hierarchy for the Licensing Kernel.

===============================================================================
ERROR KINDS
===============================================================================

Every exception belongs to exactly one ErrorKind. The kind is what the
caller (a transport layer, a CLI, a test) maps to its own vocabulary, e.g.
an HTTP status code. The kernel itself never knows about HTTP.

    NOT_FOUND      client, product, discount, or contract absent (or not owned)
    CONFLICT       duplicate active contract, contract already paid
    INVALID_INPUT  out-of-range discount, negative price, payment amount
                   mismatched or exceeding the outstanding balance,
                   malformed contract terms
    INTERNAL       store unreachable, conversion failure, a row that
                   violates a ledger invariant

NOT_FOUND, CONFLICT and INVALID_INPUT are expected outcomes of ordinary
requests. They are returned to the caller verbatim and logged at INFO.
INTERNAL errors are logged with full context and surfaced with a generic
message that never leaks store-specific detail.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LicensingKernelError (base)
    |
    +-- NotFoundError
    |   +-- ClientNotFoundError
    |   +-- ProductNotFoundError
    |   +-- ContractNotFoundError
    |   +-- DiscountNotFoundError
    |
    +-- ConflictError
    |   +-- DuplicateContractError
    |   +-- ContractAlreadyPaidError
    |
    +-- InvalidInputError
    |   +-- InvalidDiscountError
    |   +-- NegativePriceError
    |   +-- InvalidContractTermsError
    |   +-- PaymentAmountMismatchError
    |   +-- InvalidPaymentAmountError
    |   +-- PaymentExceedsOutstandingError
    |
    +-- InternalError
        +-- StoreUnavailableError
        +-- LedgerInconsistencyError
        +-- ImmutabilityViolationError

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        ledger.create_contract(...)
    except DuplicateContractError as e:
        return {"error": e.code, "product_id": e.product_id}
    except LicensingKernelError as e:
        if e.kind is ErrorKind.INTERNAL:
            raise

Codes are class attributes so they can be read without instantiation.
Structured context lives on instance attributes, never only in the message.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category a caller maps to its own status vocabulary."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    INTERNAL = "internal"


class LicensingKernelError(Exception):
    """
    Base exception for all licensing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification and a `kind` naming their category.
    """

    code: str = "LICENSING_KERNEL_ERROR"
    kind: ErrorKind = ErrorKind.INTERNAL


# Not-found exceptions


class NotFoundError(LicensingKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"
    kind: ErrorKind = ErrorKind.NOT_FOUND


class ClientNotFoundError(NotFoundError):
    """Client does not exist or has been deleted."""

    code: str = "CLIENT_NOT_FOUND"

    def __init__(self, client_ref: str):
        self.client_ref = client_ref
        super().__init__("Client does not exist")


class ProductNotFoundError(NotFoundError):
    """Product does not exist or has been deleted."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product does not exist")


class ContractNotFoundError(NotFoundError):
    """
    Contract is missing, deleted, or owned by another client.

    The three cases are deliberately indistinguishable to the caller.
    """

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__("Contract does not exist")


class DiscountNotFoundError(NotFoundError):
    """Discount does not exist or has been deleted."""

    code: str = "DISCOUNT_NOT_FOUND"

    def __init__(self, discount_id: str):
        self.discount_id = discount_id
        super().__init__("Discount does not exist")


# Conflict exceptions


class ConflictError(LicensingKernelError):
    """Base exception for state conflicts."""

    code: str = "CONFLICT"
    kind: ErrorKind = ErrorKind.CONFLICT


class DuplicateContractError(ConflictError):
    """Client already holds an active contract for the product."""

    code: str = "DUPLICATE_CONTRACT"

    def __init__(self, client_ref: str, product_id: str):
        self.client_ref = client_ref
        self.product_id = product_id
        super().__init__("Client already has a contract for this product")


class ContractAlreadyPaidError(ConflictError):
    """Payment attempted against a fully paid contract."""

    code: str = "CONTRACT_ALREADY_PAID"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__("Contract is already paid")


# Invalid-input exceptions


class InvalidInputError(LicensingKernelError):
    """Malformed or out-of-range request data."""

    code: str = "INVALID_INPUT"
    kind: ErrorKind = ErrorKind.INVALID_INPUT


class InvalidDiscountError(InvalidInputError):
    """Discount rate outside [0, 1] or finer than the stored precision."""

    code: str = "INVALID_DISCOUNT"

    def __init__(self, rate: str, reason: str = "is outside the range [0, 1]"):
        self.rate = rate
        self.reason = reason
        super().__init__(f"Discount rate {rate} {reason}")


class NegativePriceError(InvalidInputError):
    """A price would become negative."""

    code: str = "NEGATIVE_PRICE"

    def __init__(self, amount: str):
        self.amount = amount
        super().__init__(f"Price cannot be negative: {amount}")


class InvalidContractTermsError(InvalidInputError):
    """Contract dates or support years are not acceptable."""

    code: str = "INVALID_CONTRACT_TERMS"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid contract terms: {reason}")


class PaymentAmountMismatchError(InvalidInputError):
    """Single payment does not equal the contract price."""

    code: str = "PAYMENT_AMOUNT_MISMATCH"

    def __init__(self, contract_id: str, amount: str, expected: str):
        self.contract_id = contract_id
        self.amount = amount
        self.expected = expected
        super().__init__("Amount does not match contract price")


class InvalidPaymentAmountError(InvalidInputError):
    """Installment amount is zero or negative."""

    code: str = "INVALID_PAYMENT_AMOUNT"

    def __init__(self, amount: str):
        self.amount = amount
        super().__init__("Amount must be positive")


class PaymentExceedsOutstandingError(InvalidInputError):
    """Installment would overpay the contract."""

    code: str = "PAYMENT_EXCEEDS_OUTSTANDING"

    def __init__(self, contract_id: str, amount: str, outstanding: str):
        self.contract_id = contract_id
        self.amount = amount
        self.outstanding = outstanding
        super().__init__("Amount exceeds outstanding payments")


# Internal exceptions


class InternalError(LicensingKernelError):
    """Base exception for failures the caller cannot act on."""

    code: str = "INTERNAL_ERROR"
    kind: ErrorKind = ErrorKind.INTERNAL


class StoreUnavailableError(InternalError):
    """The persistent store could not be reached."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Store unavailable during {operation}")


class LedgerInconsistencyError(InternalError):
    """A stored row violates a ledger invariant."""

    code: str = "LEDGER_INCONSISTENCY"

    def __init__(self, contract_id: str, reason: str):
        self.contract_id = contract_id
        self.reason = reason
        super().__init__(f"Ledger for contract {contract_id} is inconsistent: {reason}")


class ImmutabilityViolationError(InternalError):
    """
    Attempted to modify or delete an append-only record.

    Payment rows are never updated or deleted; a contract's locked price
    and paid flag never move backwards.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
