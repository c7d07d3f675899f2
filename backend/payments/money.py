"""
Monetary precision helpers for order pricing and gateway amounts.

Key Principles:
1. NEVER use float for money
2. Always quantize Decimals BEFORE converting to minor units
3. Round half-up to the currency's minor unit (the rule Indian GST invoices use)
4. The gateway speaks integer minor units (paise); the database stores Decimals
"""

from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Union

# Set high precision for intermediate calculations
getcontext().prec = 28

Number = Union[Decimal, str, int, float]

ZERO = Decimal("0.00")

# Currency minor unit exponents (how many decimal places)
CURRENCY_EXPONENT = {
    "INR": 2,  # Indian Rupee (paise)
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "SGD": 2,
    "AED": 2,
    "JPY": 0,
    "KWD": 3,
    "BHD": 3,
    "OMR": 3,
}

CURRENCY_SYMBOL = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def currency_exponent(currency: str) -> int:
    """
    Number of decimal places for a currency. Unknown currencies default to 2.

    Examples:
        >>> currency_exponent("INR")
        2
        >>> currency_exponent("jpy")
        0
    """
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def quantize_decimal(currency: str) -> Decimal:
    """
    Quantization exponent for a currency.

    Examples:
        >>> quantize_decimal("INR")
        Decimal('0.01')
        >>> quantize_decimal("JPY")
        Decimal('1')
    """
    exp = currency_exponent(currency)
    return Decimal(1).scaleb(-exp)


def quantize(currency: str, amount: Number) -> Decimal:
    """
    Round to currency decimals using ROUND_HALF_UP.

    Examples:
        >>> quantize("INR", "10.125")
        Decimal('10.13')
        >>> quantize("INR", "10.124")
        Decimal('10.12')
        >>> quantize("JPY", "1234.5")
        Decimal('1235')
    """
    if isinstance(amount, float):
        # Convert float to string first to avoid precision issues
        amount = str(amount)

    return Decimal(amount).quantize(quantize_decimal(currency), rounding=ROUND_HALF_UP)


def to_minor(currency: str, amount: Number) -> int:
    """
    Convert a decimal amount to integer minor units (paise for INR).

    Examples:
        >>> to_minor("INR", "510.00")
        51000
        >>> to_minor("INR", "0.005")
        1
    """
    q = quantize(currency, amount)
    return int(q.scaleb(currency_exponent(currency)))


def from_minor(currency: str, minor: int) -> Decimal:
    """
    Convert integer minor units back to a Decimal amount.

    Examples:
        >>> from_minor("INR", 51000)
        Decimal('510.00')
    """
    exp = currency_exponent(currency)
    return Decimal(int(minor)).scaleb(-exp).quantize(quantize_decimal(currency))


def percentage_of(currency: str, amount: Number, percent: Number) -> Decimal:
    """
    ``percent`` % of ``amount``, rounded to the currency.

    Examples:
        >>> percentage_of("INR", "500.00", "5")
        Decimal('25.00')
        >>> percentage_of("INR", "333.33", "18")
        Decimal('60.00')
    """
    return quantize(currency, Decimal(amount) * Decimal(percent) / Decimal("100"))


def format_money(currency: str, amount: Number) -> str:
    """
    Human readable amount for notification messages.

    Examples:
        >>> format_money("INR", "510")
        '₹510.00'
    """
    symbol = CURRENCY_SYMBOL.get(currency.upper(), f"{currency.upper()} ")
    return f"{symbol}{quantize(currency, amount)}"
