"""
Unit tests for format_service: amount formatting, currency lookup and the
one-line settlement summary.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from fairshare.app.services import format_service
from fairshare.app.services.format_service import (
    ALL_SETTLED_MESSAGE,
    SUPPORTED_CURRENCIES,
    currency_name,
    format_amount,
    is_known_currency,
    is_supported_currency,
    summarize,
)


@pytest.mark.parametrize(
    ("amount", "currency", "expected"),
    [
        (Decimal("30"), "USD", "$30.00"),
        (Decimal("1234.5"), "USD", "$1,234.50"),
        (Decimal("1234567.891"), "USD", "$1,234,567.89"),
        (Decimal("5"), "EUR", "€5.00"),
        (Decimal("-5"), "EUR", "-€5.00"),
        (Decimal("19.99"), "GBP", "£19.99"),
        (Decimal("7.25"), "CAD", "CA$7.25"),
        (Decimal("1000"), "INR", "₹1,000.00"),
    ],
)
def test_format_amount_supported_currencies(amount, currency, expected):
    assert format_amount(amount, currency) == expected


def test_format_amount_alphabetic_symbols():
    franc = format_amount(Decimal("10"), "CHF")
    krona = format_amount(Decimal("-2500"), "SEK")

    assert franc.startswith("CHF") and franc.endswith("10.00")
    assert krona.startswith("-SEK") and krona.endswith("2,500.00")


def test_format_amount_iso_code_outside_picker_table():
    assert "NZD" not in SUPPORTED_CURRENCIES
    assert format_amount(Decimal("10"), "NZD") == "NZ$10.00"


def test_format_amount_follows_locale():
    assert format_amount(Decimal("1234.5"), "EUR", locale="de_DE") == "€1.234,50"
    assert format_amount(Decimal("1234.5"), "USD", locale="en_US") == "$1,234.50"


def test_format_amount_always_two_decimals_even_for_yen():
    assert format_amount(Decimal("1500"), "JPY") == "¥1,500.00"


def test_format_amount_rounds_half_up():
    assert format_amount(Decimal("2.005"), "USD") == "$2.01"
    assert format_amount(Decimal("2.004"), "USD") == "$2.00"


def test_format_amount_lowercase_code():
    assert format_amount(Decimal("3"), "eur") == "€3.00"


def test_format_amount_accepts_floats_ints_and_strings():
    assert format_amount(0.1, "USD") == "$0.10"
    assert format_amount(12, "USD") == "$12.00"
    assert format_amount("8.5", "USD") == "$8.50"


@pytest.mark.parametrize("currency", [None, ""])
def test_format_amount_empty_currency_means_usd(currency):
    assert format_amount(Decimal("4"), currency) == "$4.00"


def test_format_amount_unknown_currency_falls_back_to_code():
    assert format_amount(Decimal("12.5"), "XYZ") == "XYZ 12.50"
    assert format_amount(Decimal("1234.5"), "zzz") == "ZZZ 1234.50"


def test_supported_currency_table():
    assert len(SUPPORTED_CURRENCIES) == 25
    for code, name in SUPPORTED_CURRENCIES.items():
        assert len(code) == 3 and code.isupper()
        assert name
        assert is_known_currency(code)


def test_is_supported_currency():
    assert is_supported_currency("USD")
    assert is_supported_currency("php")
    assert not is_supported_currency("XYZ")
    assert not is_supported_currency("")
    assert not is_supported_currency(None)


def test_currency_name():
    assert currency_name("EUR") == "Euro"
    assert currency_name("usd") == "US Dollar"
    assert currency_name("XYZ") == "XYZ"
    assert currency_name("NZD") == "New Zealand Dollar"


def test_is_known_currency():
    assert is_known_currency("NZD")
    assert is_known_currency("usd")
    assert not is_known_currency("XYZ")
    assert not is_known_currency("")
    assert not is_known_currency(None)


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (0, ALL_SETTLED_MESSAGE),
        (1, "1 payment needed to settle up"),
        (2, "2 payments needed to settle up"),
        (7, "7 payments needed to settle up"),
    ],
)
def test_summarize_thresholds(count, expected):
    assert summarize([object()] * count) == expected


def test_all_settled_message_text():
    assert format_service.ALL_SETTLED_MESSAGE == "All settled up! 🎉"
