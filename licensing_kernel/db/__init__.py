"""Database layer - engine, base classes, types, and append-only listeners."""

from licensing_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from licensing_kernel.db.engine import (
    create_session_factory,
    create_tables,
    drop_tables,
    init_engine_from_url,
    session_scope,
)
from licensing_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from licensing_kernel.db.types import UTCDateTime

__all__ = [
    "init_engine_from_url",
    "create_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "UTCDateTime",
]
