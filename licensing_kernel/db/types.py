"""
Module: licensing_kernel.db.types
Responsibility: Precision constants and column types for money, rates,
    and timestamps, so that every model uses identical definitions.
Architecture position: Kernel > DB. May be imported by models/, domain/,
    services/, and selectors/. MUST NOT import from any of those layers.

Invariants enforced:
    - No floats anywhere in the licensing kernel. Money columns are
      Numeric(38, 9), discount percentages Numeric(7, 5).
    - Timestamps are stored in UTC and always read back timezone-aware.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


# Monetary amount: 38 digits total, 9 decimal places
MONEY_PRECISION = 38
MONEY_DECIMAL_PLACES = 9

# Discount fraction in [0, 1] with 5 decimal places
PERCENTAGE_PRECISION = 7
PERCENTAGE_DECIMAL_PLACES = 5


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that round-trips as UTC on every backend.

    PostgreSQL stores TIMESTAMP WITH TIME ZONE natively. SQLite has no
    timezone support, so values are normalised to naive UTC on the way in
    and re-tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime is not accepted: {value!r}")
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
