"""
Engine settings schema (``licensing_config.settings``).

Responsibility
--------------
Frozen dataclass holding every runtime setting of the licensing engine.
Instances are produced by ``licensing_config.loader`` and never mutated.

Invariants enforced
-------------------
* ``recurring_client_bonus`` is an exact Decimal in [0, 1], never a float.
* Pool sizes and timeouts are non-negative; ``max_years_supported`` >= 1.
* ``log_level`` is a level name the stdlib ``logging`` module knows.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class EngineSettings:
    """Runtime configuration for the licensing engine."""

    database_url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    recurring_client_bonus: Decimal = Decimal("0.05")
    max_years_supported: int = 3
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ValueError("database_url is required")
        for name in ("pool_size", "max_overflow", "pool_timeout", "pool_recycle"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.recurring_client_bonus, Decimal):
            raise ValueError("recurring_client_bonus must be a Decimal")
        if not Decimal("0") <= self.recurring_client_bonus <= Decimal("1"):
            raise ValueError(
                f"recurring_client_bonus must be within [0, 1], "
                f"got {self.recurring_client_bonus}"
            )
        if (
            isinstance(self.max_years_supported, bool)
            or not isinstance(self.max_years_supported, int)
            or self.max_years_supported < 1
        ):
            raise ValueError(
                f"max_years_supported must be a positive integer, "
                f"got {self.max_years_supported!r}"
            )
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level!r}")
        object.__setattr__(self, "log_level", self.log_level.upper())
