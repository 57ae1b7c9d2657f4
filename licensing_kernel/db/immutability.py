"""
ORM-Level Append-Only Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The payment ledger is an audit trail. A refund is a new negative row, never
an edit of an old one. A contract's locked price is the number the client
agreed to, and a paid contract cannot become unpaid.

SQLAlchemy fires events before UPDATE/DELETE operations reach the database.
The listeners below intercept them:

    session.flush()
         |
         v
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity    | Rule
----------|--------------------------------------------------------------
Payment   | Never updated, never deleted
Contract  | price never changes; is_paid never goes true -> false;
          | rows are never deleted (soft delete via is_deleted)

Raw SQL bypasses these listeners; the database constraints on the tables
(check constraints, the partial unique index) still apply.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from licensing_kernel.exceptions import ImmutabilityViolationError
from licensing_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = ("updated_at",)


def _blocked(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_payment_immutability(mapper, connection, target):
    """Payment rows are append-only: any field change is rejected."""
    insp = inspect(target)
    for attr in insp.attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            _blocked(
                "Payment",
                target.id,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on a ledger entry",
                field=attr.key,
            )


def _check_payment_delete(mapper, connection, target):
    _blocked("Payment", target.id, "DELETE", "Ledger entries cannot be deleted")


def _check_contract_immutability(mapper, connection, target):
    """Locked price never changes; paid never reverts."""
    price_history = get_history(target, "price")
    if price_history.deleted and price_history.added:
        if price_history.deleted[0] != price_history.added[0]:
            _blocked(
                "Contract",
                target.id,
                "UPDATE",
                "Locked contract price cannot change",
                field="price",
            )

    paid_history = get_history(target, "is_paid")
    if paid_history.deleted and paid_history.deleted[0] and not target.is_paid:
        _blocked(
            "Contract",
            target.id,
            "UPDATE",
            "A paid contract cannot become unpaid",
            field="is_paid",
        )


def _check_contract_delete(mapper, connection, target):
    _blocked(
        "Contract",
        target.id,
        "DELETE",
        "Contracts are soft-deleted, never removed",
    )


_LISTENERS = (
    ("Payment", "before_update", _check_payment_immutability),
    ("Payment", "before_delete", _check_payment_delete),
    ("Contract", "before_update", _check_contract_immutability),
    ("Contract", "before_delete", _check_contract_delete),
)


def _models() -> dict:
    from licensing_kernel.models.contract import Contract
    from licensing_kernel.models.payment import Payment

    return {"Contract": Contract, "Payment": Payment}


def register_immutability_listeners() -> None:
    """
    Register the append-only listeners (idempotent).

    Call during application initialization, after the models are importable
    and before any database operation.
    """
    models = _models()
    for model_name, event_name, listener in _LISTENERS:
        target = models[model_name]
        if not event.contains(target, event_name, listener):
            event.listen(target, event_name, listener)


def unregister_immutability_listeners() -> None:
    """
    Remove the append-only listeners.

    WARNING: Only use this in tests that need to violate the rules on
    purpose.
    """
    models = _models()
    for model_name, event_name, listener in _LISTENERS:
        target = models[model_name]
        if event.contains(target, event_name, listener):
            event.remove(target, event_name, listener)
