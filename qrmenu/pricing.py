"""Price parsing, default-price policy and currency formatting."""

import logging
import math
from collections.abc import Iterable
from typing import Any

from babel.core import UnknownLocaleError
from babel.numbers import UnknownCurrencyError, format_currency

logger = logging.getLogger(__name__)


def parse_price(value: Any) -> float | None:
    """Convert user or document input into a finite price.

    Args:
        value: Number or numeric string (surrounding whitespace allowed)

    Returns:
        The price as float, or None if the value is not a finite number
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def default_price(price: Any, size_prices: Iterable[Any] = ()) -> float | None:
    """Return the price an item displays before a size is chosen.

    When sizes exist the first listed size with a finite price wins,
    otherwise the flat price is used.

    Args:
        price: The item's flat price (may be missing)
        size_prices: Prices of the item's sizes in listed order

    Returns:
        Default price or None if nothing usable is present
    """
    for size_price in size_prices:
        parsed = parse_price(size_price)
        if parsed is not None:
            return parsed
    return parse_price(price)


def format_price(value: Any, currency: str = "USD", locale: str = "en_US") -> str:
    """Format a price as a locale currency string.

    Args:
        value: Price to format
        currency: ISO 4217 currency code
        locale: Babel locale identifier

    Returns:
        Formatted price, "" for missing values, or the raw text if not numeric
    """
    if value is None:
        return ""
    number = parse_price(value)
    if number is None:
        return str(value)

    try:
        return format_currency(number, currency or "USD", locale=locale)
    except (UnknownCurrencyError, UnknownLocaleError, ValueError):
        logger.warning(f"Cannot format price in {currency!r}/{locale!r}")
        return f"${number:.2f}"
