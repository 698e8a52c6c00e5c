from decimal import Decimal, ROUND_HALF_UP

from ..config import settings

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "GHS": "₵",
    "KES": "KSh",
    # Add other currencies as needed
}

def get_currency_symbol(currency_code: str) -> str:
    """Returns the currency symbol for a given currency code."""
    return CURRENCY_SYMBOLS.get(currency_code.upper(), "")


def format_money(amount, currency_code: str | None = None) -> str:
    """
    Render a money value as symbol + grouped whole units, e.g. ``₦150,000``.
    Fractions are rounded half-up; no decimals are shown.
    """
    symbol = get_currency_symbol(currency_code or settings.DEFAULT_CURRENCY)
    value = Decimal(str(amount or 0)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,}"
