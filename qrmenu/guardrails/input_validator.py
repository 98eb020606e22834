"""Validation of owner input before anything is written."""

import logging
import re

from qrmenu.pricing import parse_price

logger = logging.getLogger(__name__)

# Patterns that indicate markup or script injection into menu text
BLOCKED_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onclick",
    r"onerror",
]

MAX_NAME_LENGTH = 120
MAX_PRICE = 1_000_000

_RESTAURANT_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,79}$")


class InputValidator:
    """Checks owner-entered names, prices and identifiers.

    Every check returns ``(is_valid, error)`` where ``error`` is a short
    message for the dashboard, or None when the input is acceptable.
    """

    @staticmethod
    def validate_name(value: str | None, what: str = "Name") -> tuple[bool, str | None]:
        """Validate a category or item name."""
        text = str(value or "").strip()
        if not text:
            return False, f"{what} cannot be empty."

        if len(text) > MAX_NAME_LENGTH:
            logger.warning(f"Rejected {what.lower()}: too long ({len(text)} chars)")
            return False, f"{what} too long (max {MAX_NAME_LENGTH} characters)."

        lowered = text.lower()
        for pattern in BLOCKED_PATTERNS:
            if re.search(pattern, lowered):
                logger.warning(f"Rejected {what.lower()}: suspicious pattern ({pattern})")
                return False, f"{what} contains suspicious content."

        return True, None

    @staticmethod
    def validate_price(value) -> tuple[bool, str | None]:
        """Validate a price typed by the owner."""
        price = parse_price(value)
        if price is None:
            return False, "Enter a valid price."
        if price < 0 or price > MAX_PRICE:
            return False, f"Price must be between 0 and {MAX_PRICE}."
        return True, None

    @staticmethod
    def validate_restaurant_id(value: str | None) -> tuple[bool, str | None]:
        """Validate a restaurant identifier used in URLs and document paths."""
        text = str(value or "").strip()
        if not text:
            return False, "Enter your restaurant id."
        if not _RESTAURANT_ID.match(text):
            return False, "Restaurant id may only contain letters, digits, '-' and '_'."
        return True, None
