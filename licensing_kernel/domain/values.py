"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides the value types every price, discount, and payment computation
    goes through: Money (a signed exact amount) and Rate (a fraction in
    [0, 1]). These replace raw Decimal wherever licensing amounts appear in
    domain logic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module and by all services.

Invariants enforced:
    - No binary floating point: constructing Money or Rate from a float is
      rejected. Single-payment validation relies on exact equality, which
      floats cannot provide.
    - Rates are always within [0, 1].
    - Prices are never negative (Money.price, subtract(allow_negative=False)).
      Plain Money may be negative: refunds are negative ledger entries.
    - Prices and payment amounts carry at most 9 decimal places and rates
      at most 5, the scales of their columns. Anything finer is rejected,
      never silently rounded by the store.

Failure modes:
    - InvalidInputError on float input, an unparseable amount, or an
      amount finer than the money scale.
    - InvalidDiscountError on a rate outside [0, 1] or finer than 5 places.
    - NegativePriceError when a price would be negative.

Audit relevance:
    Amounts are never rounded implicitly. The only rounding in the kernel
    is Money.rounded(), applied once when a contract price is locked.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation

from licensing_kernel.exceptions import (
    InvalidDiscountError,
    InvalidInputError,
    NegativePriceError,
)

_ZERO = Decimal("0")
_ONE = Decimal("1")

# Scales of the money and percentage columns
MONEY_DECIMAL_PLACES = 9
RATE_DECIMAL_PLACES = 5

_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
_MONEY_CONTEXT = Context(prec=38)


def to_decimal(value: Decimal | str | int) -> Decimal:
    """
    Convert an exact input to Decimal.

    Raises:
        InvalidInputError: If value is a float, a bool, or not a number.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or isinstance(value, float):
        raise InvalidInputError(
            f"Binary floating point is not accepted for amounts: {value!r}"
        )
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidInputError(f"Invalid amount: {value!r}") from e
    else:
        raise InvalidInputError(f"Invalid amount type: {type(value).__name__}")

    if not result.is_finite():
        raise InvalidInputError(f"Amount must be finite: {value!r}")
    return result


def decimal_places(value: Decimal) -> int:
    """Significant digits after the decimal point (trailing zeros ignored)."""
    _, digits, exponent = value.as_tuple()
    if exponent >= 0 or not any(digits):
        return 0
    trailing = len(digits) - len("".join(map(str, digits)).rstrip("0"))
    return max(0, -exponent - trailing)


@dataclass(frozen=True, slots=True)
class Rate:
    """
    Discount fraction value object.

    Contract:
        Wraps a Decimal in the closed interval [0, 1]. 0.15 means 15% off.

    Guarantees:
        - Immutable and hashable
        - value is always a Decimal within [0, 1]
        - value has at most RATE_DECIMAL_PLACES decimal places
    """

    value: Decimal

    def __post_init__(self) -> None:
        value = to_decimal(self.value)
        if value < _ZERO or value > _ONE:
            raise InvalidDiscountError(str(value))
        if decimal_places(value) > RATE_DECIMAL_PLACES:
            raise InvalidDiscountError(
                str(value), f"has more than {RATE_DECIMAL_PLACES} decimal places"
            )
        object.__setattr__(self, "value", value)

    @classmethod
    def of(cls, value: Decimal | str | int) -> Rate:
        return cls(value=to_decimal(value))

    @classmethod
    def zero(cls) -> Rate:
        return cls(value=_ZERO)

    @classmethod
    def clamped(cls, value: Decimal | str | int) -> Rate:
        """Build a Rate from any exact value, clamping it into [0, 1]."""
        value = to_decimal(value)
        return cls(value=min(max(value, _ZERO), _ONE))

    @property
    def is_zero(self) -> bool:
        return self.value == _ZERO

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"Rate({self.value!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Exact monetary amount.

    Contract:
        Wraps a signed Decimal. There is a single currency in the system,
        so no currency code is carried.

    Guarantees:
        - Immutable and hashable
        - amount is always a finite Decimal, never float
        - Comparison and equality are exact (Decimal("100.0") equals
          Decimal("100.00"); Decimal("100.00") does not equal Decimal("100.01"))

    Non-goals:
        - Does NOT round. Callers that need a display precision quantize
          themselves.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))

    @classmethod
    def of(cls, amount: Decimal | str | int) -> Money:
        """Factory for a signed amount (payments and refunds)."""
        return cls(amount=to_decimal(amount))

    @classmethod
    def price(cls, amount: Decimal | str | int) -> Money:
        """
        Factory for a price.

        Raises:
            NegativePriceError: If the amount is below zero.
            InvalidInputError: If the amount is finer than the money scale.
        """
        money = cls(amount=to_decimal(amount))
        if money.is_negative:
            raise NegativePriceError(str(money.amount))
        money.require_storable()
        return money

    @classmethod
    def zero(cls) -> Money:
        return cls(amount=_ZERO)

    @classmethod
    def sum(cls, amounts) -> Money:
        """Exact sum of an iterable of Money values (zero when empty)."""
        total = cls.zero()
        for amount in amounts:
            total = total.add(amount)
        return total

    @property
    def fits_scale(self) -> bool:
        """True when the amount has at most MONEY_DECIMAL_PLACES decimals."""
        return decimal_places(self.amount) <= MONEY_DECIMAL_PLACES

    def require_storable(self) -> None:
        """
        Raises:
            InvalidInputError: If the amount cannot be stored without rounding.
        """
        if not self.fits_scale:
            raise InvalidInputError(
                f"Amount {self.amount} has more than "
                f"{MONEY_DECIMAL_PLACES} decimal places"
            )

    def rounded(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Amount quantized to MONEY_DECIMAL_PLACES with an explicit rounding mode."""
        return Money(
            amount=self.amount.quantize(
                _MONEY_QUANTUM, rounding=rounding, context=_MONEY_CONTEXT
            )
        )

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    @property
    def is_positive(self) -> bool:
        return self.amount > _ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < _ZERO

    def add(self, other: Money) -> Money:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot add Money and {type(other).__name__}")
        return Money(amount=self.amount + other.amount)

    def subtract(self, other: Money, *, allow_negative: bool = True) -> Money:
        """
        Subtract other from self.

        Raises:
            NegativePriceError: If allow_negative is False and the result
                would be below zero.
        """
        if not isinstance(other, Money):
            raise TypeError(f"Cannot subtract {type(other).__name__} from Money")
        result = Money(amount=self.amount - other.amount)
        if not allow_negative and result.is_negative:
            raise NegativePriceError(str(result.amount))
        return result

    def multiply_by_rate(self, rate: Rate | Decimal | str) -> Money:
        """
        Apply a discount: amount * (1 - rate).

        Preconditions:
            - self is a price (not negative).
            - rate is within [0, 1].

        Raises:
            InvalidDiscountError: If rate is outside [0, 1].
            NegativePriceError: If self is negative.
        """
        if not isinstance(rate, Rate):
            rate = Rate.of(rate)
        if self.is_negative:
            raise NegativePriceError(str(self.amount))
        return Money(amount=self.amount * (_ONE - rate.value))

    def compare(self, other: Money) -> int:
        """Return -1, 0 or 1 as self is less than, equal to, or greater than other."""
        if not isinstance(other, Money):
            raise TypeError(f"Cannot compare Money and {type(other).__name__}")
        if self.amount < other.amount:
            return -1
        if self.amount > other.amount:
            return 1
        return 0

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.compare(other) >= 0

    def __str__(self) -> str:
        return str(self.amount)

    def __repr__(self) -> str:
        return f"Money({self.amount!r})"
