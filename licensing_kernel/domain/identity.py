"""
Identity -- the tagged client reference.

Responsibility:
    ClientRef names a client by kind and natural key. It is the only client
    handle the engine accepts; contracts store both halves and every lookup
    filters on both.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A ClientRef is never empty: kind is a ClientKind and natural_key is a
      non-blank string.
    - Immutable once built. A contract referencing it keeps it forever.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from licensing_kernel.exceptions import InvalidInputError


class ClientKind(str, Enum):
    """Discriminator of a ClientRef.

    INDIVIDUAL clients are keyed by a national personal identifier,
    COMPANY clients by a company registry number.
    """

    INDIVIDUAL = "individual"
    COMPANY = "company"


# Column widths of the natural keys
NATURAL_KEY_LENGTH = {
    ClientKind.INDIVIDUAL: 11,
    ClientKind.COMPANY: 10,
}


@dataclass(frozen=True, slots=True)
class ClientRef:
    """
    Discriminated client identity: Individual(key) or Company(key).

    Guarantees:
        - kind is always a ClientKind
        - natural_key is stripped and non-empty
        - natural_key fits the column for its kind
    """

    kind: ClientKind
    natural_key: str

    def __post_init__(self) -> None:
        try:
            kind = ClientKind(self.kind)
        except ValueError as e:
            raise InvalidInputError(f"Unknown client kind: {self.kind!r}") from e
        if not isinstance(self.natural_key, str) or not self.natural_key.strip():
            raise InvalidInputError("Client identifier is required")
        key = self.natural_key.strip()
        if len(key) > NATURAL_KEY_LENGTH[kind]:
            raise InvalidInputError(
                f"Client identifier for {kind.value} is longer than "
                f"{NATURAL_KEY_LENGTH[kind]} characters"
            )
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "natural_key", key)

    @classmethod
    def individual(cls, pesel: str) -> ClientRef:
        return cls(kind=ClientKind.INDIVIDUAL, natural_key=pesel)

    @classmethod
    def company(cls, krs: str) -> ClientRef:
        return cls(kind=ClientKind.COMPANY, natural_key=krs)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.natural_key}"
