"""
services/format_service.py — Human-readable amounts and settlement summaries.

Pure functions; no Flask, no database. Amounts are rendered with babel's
locale data (symbol, grouping and decimal separators come from `locale`,
en_US by default) and always show exactly two fraction digits, whatever the
currency.
"""

from __future__ import annotations

from collections.abc import Sized

from babel.numbers import (
    UnknownCurrencyError,
    format_currency,
    get_currency_name,
    validate_currency,
)

from fairshare.app.services.balance_service import round2, to_decimal


DEFAULT_LOCALE = "en_US"

# Symbol first, grouped, two decimals in every currency (JPY included).
AMOUNT_PATTERN = "¤#,##0.00"

# Currencies offered when a group is created. Formatting is not limited to
# these; any ISO 4217 code babel knows is rendered with its own symbol.
SUPPORTED_CURRENCIES: dict[str, str] = {
    "USD": "US Dollar",
    "EUR": "Euro",
    "GBP": "British Pound",
    "JPY": "Japanese Yen",
    "CAD": "Canadian Dollar",
    "AUD": "Australian Dollar",
    "CHF": "Swiss Franc",
    "CNY": "Chinese Yuan",
    "SEK": "Swedish Krona",
    "NOK": "Norwegian Krone",
    "DKK": "Danish Krone",
    "PLN": "Polish Zloty",
    "CZK": "Czech Koruna",
    "HUF": "Hungarian Forint",
    "RUB": "Russian Ruble",
    "BRL": "Brazilian Real",
    "MXN": "Mexican Peso",
    "KRW": "South Korean Won",
    "SGD": "Singapore Dollar",
    "HKD": "Hong Kong Dollar",
    "INR": "Indian Rupee",
    "THB": "Thai Baht",
    "IDR": "Indonesian Rupiah",
    "MYR": "Malaysian Ringgit",
    "PHP": "Philippine Peso",
}

ALL_SETTLED_MESSAGE = "All settled up! 🎉"


def is_supported_currency(code: str | None) -> bool:
    return bool(code) and code.upper() in SUPPORTED_CURRENCIES


def is_known_currency(code: str | None) -> bool:
    """True for any ISO 4217 code in babel's currency list."""
    if not code:
        return False
    try:
        validate_currency(code.upper())
    except UnknownCurrencyError:
        return False
    return True


def format_amount(amount, currency: str | None = "USD", locale: str = DEFAULT_LOCALE) -> str:
    """
    Formats `amount` for display in `currency` using `locale`'s conventions.

        format_amount(Decimal("1234.5"), "USD")             -> "$1,234.50"
        format_amount(Decimal("-5"), "EUR")                 -> "-€5.00"
        format_amount(Decimal("10"), "NZD")                 -> "NZ$10.00"
        format_amount(Decimal("1234.5"), "EUR", "de_DE")    -> "€1.234,50"
        format_amount(Decimal("12.5"), "XYZ")               -> "XYZ 12.50"

    The amount is rounded half-up to cents before formatting. An empty
    currency means USD. A code babel does not recognise falls back to
    "<CODE> <amount>" with no grouping instead of raising.
    """
    value = round2(to_decimal(amount))
    code = (currency or "USD").upper()

    if not is_known_currency(code):
        return f"{code} {value:.2f}"

    return format_currency(
        value,
        code,
        format=AMOUNT_PATTERN,
        locale=locale,
        currency_digits=False,
    )


def summarize(settlements: Sized) -> str:
    """
    One-line summary of how many payments are still needed.

    0 → ALL_SETTLED_MESSAGE, 1 → singular phrasing, more → plural with count.
    """
    count = len(settlements)
    if count == 0:
        return ALL_SETTLED_MESSAGE
    if count == 1:
        return "1 payment needed to settle up"
    return f"{count} payments needed to settle up"


def currency_name(code: str, locale: str = DEFAULT_LOCALE) -> str:
    """
    Display name of a currency: the supported-currency table first, then
    babel's name for other ISO codes, else the code itself.
    """
    key = (code or "").upper()
    if key in SUPPORTED_CURRENCIES:
        return SUPPORTED_CURRENCIES[key]
    if not is_known_currency(key):
        return code
    return get_currency_name(key, locale=locale)
