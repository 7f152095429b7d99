"""Unit tests for the Money value object."""

from __future__ import annotations

from decimal import Decimal

import pytest

from shared.domain.money import CurrencyMismatchError, Money

pytestmark = pytest.mark.unit


def test_amounts_are_quantized_to_cents():
    assert Money(amount="10.005", currency="usd") == Money(amount="10.01", currency="USD")
    assert Money(amount=3, currency="USD").model_dump(mode="json") == {
        "amount": "3.00",
        "currency": "USD",
    }


def test_sum_and_times():
    lines = [Money(amount="10.00", currency="USD").times(2), Money(amount="15", currency="USD")]
    assert Money.sum(lines, "USD") == Money(amount="35.00", currency="USD")
    assert Money.sum([], "EUR") == Money.zero("EUR")


def test_currencies_never_mix():
    with pytest.raises(CurrencyMismatchError):
        Money(amount="1", currency="USD") + Money(amount="1", currency="EUR")
    with pytest.raises(CurrencyMismatchError):
        Money(amount="1", currency="USD").exceeds(Money(amount="1", currency="EUR"))


def test_clamp_min_zero():
    negative = Money(amount="2", currency="USD") - Money(amount="5", currency="USD")
    assert negative.amount == Decimal("-3.00")
    assert negative.clamp_min_zero() == Money.zero("USD")
