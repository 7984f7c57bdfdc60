from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError

SCALE = 2
_MINOR_PER_UNIT = 10**SCALE

MoneyLike = Union["Money", Decimal, int, str]


def to_decimal(value: MoneyLike) -> Decimal:
    """Coerce user input into a Decimal without passing through binary floats."""
    if isinstance(value, Money):
        return value.to_decimal()
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError("Amount must be a decimal value")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError("Amount must be a decimal value") from exc
    if not result.is_finite():
        raise InvalidAmountError("Amount must be a decimal value")
    return result


def fractional_digits(value: Decimal) -> int:
    exponent = value.as_tuple().exponent
    return -exponent if isinstance(exponent, int) and exponent < 0 else 0


@dataclass(frozen=True, order=True, slots=True)
class Money:
    """Immutable amount with two fractional digits, held as integer minor units."""

    minor_units: int

    @classmethod
    def zero(cls) -> Money:
        return cls(0)

    @classmethod
    def of(cls, value: MoneyLike) -> Money:
        """Parse ``value`` exactly. More than two fractional digits is rejected, never rounded."""
        if isinstance(value, Money):
            return value
        decimal_value = to_decimal(value)
        if fractional_digits(decimal_value) > SCALE:
            raise InvalidAmountError(
                f"Amount cannot have more than {SCALE} decimal places"
            )
        return cls(int(decimal_value * _MINOR_PER_UNIT))

    @classmethod
    def amount(cls, value: MoneyLike) -> Money:
        """Parse a transfer amount field; negative values are invalid."""
        money = cls.of(value)
        if money.is_negative():
            raise InvalidAmountError("Amount cannot be negative")
        return money

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.minor_units + other.minor_units)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.minor_units - other.minor_units)

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    def to_decimal(self) -> Decimal:
        return Decimal(self.minor_units).scaleb(-SCALE)

    def __str__(self) -> str:
        return f"{self.to_decimal():.{SCALE}f}"
