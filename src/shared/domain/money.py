"""Money value object.

Amounts are ``Decimal`` quantized to cents and travel over the wire as
strings (``{"amount": "35.00", "currency": "USD"}``).  Arithmetic between
two different currencies is refused instead of silently compared.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

CENTS = Decimal("0.01")


class CurrencyMismatchError(ValueError):
    """Two amounts in different currencies were combined or compared."""

    def __init__(self, left: str, right: str) -> None:
        super().__init__(f"Cannot combine {left} with {right}.")
        self.left = left
        self.right = right


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


class Money(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal
    currency: str

    @field_validator("amount", mode="before")
    @classmethod
    def _coerce_amount(cls, v: object) -> Decimal:
        return quantize(Decimal(str(v)))

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return v.strip().upper()

    @field_serializer("amount")
    def _serialize_amount(self, amount: Decimal) -> str:
        return str(quantize(amount))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @classmethod
    def sum(cls, values: Iterable[Money], currency: str) -> Money:
        total = cls.zero(currency)
        for value in values:
            total = total + value
        return total

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def __add__(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def times(self, factor: Decimal | int) -> Money:
        return Money(amount=self.amount * Decimal(factor), currency=self.currency)

    def exceeds(self, other: Money) -> bool:
        self._check_currency(other)
        return self.amount > other.amount

    def clamp_min_zero(self) -> Money:
        if self.amount < 0:
            return Money.zero(self.currency)
        return self

    def __str__(self) -> str:
        return f"{quantize(self.amount)} {self.currency}"
