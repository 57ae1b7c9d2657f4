"""
Module: licensing_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors form the read side of the store contract: existence checks,
    price and discount lookups, contract and ledger reads.
Architecture position: Kernel > Selectors. May import from db/, models/
    and the pure domain types they return. MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but MUST
      NOT call session.add(), session.delete(), session.commit(), or
      session.flush().
    - Selectors return Money/Rate values, frozen DTOs, or booleans. The one
      exception is ContractSelector.get_contract(for_update=True), which
      hands the locked ORM row to the service that will mutate it.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return values, DTOs, or booleans.

    Non-goals:
        - BaseSelector does NOT define any query methods; subclasses
          implement catalog, client, and contract queries.
    """

    def __init__(self, session: Session):
        """
        Initialize the selector.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session
