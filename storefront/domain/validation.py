"""Input normalisation shared by the catalog, cart and checkout."""
from decimal import Decimal, InvalidOperation
from typing import Any

from storefront.domain.errors import InvalidInputError

KEY_SEPARATOR = ":"


def normalize_identifier(value: Any, field: str) -> str:
    """
    Normalise a user or product identifier to a string.

    Ints are accepted (catalog ids are numeric in the default seed). The key
    separator is rejected so an identifier can never alias another record.

    Raises:
        InvalidInputError: If the identifier is empty or malformed
    """
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidInputError(f"{field} must be a string or integer")
    text = str(value).strip()
    if not text:
        raise InvalidInputError(f"{field} is required")
    if KEY_SEPARATOR in text:
        raise InvalidInputError(f"{field} must not contain {KEY_SEPARATOR!r}")
    return text


def parse_quantity(value: Any, field: str = "quantity") -> int:
    """
    Parse a strictly positive integer quantity.

    Integral strings such as ``"3"`` are accepted; floats, bools and
    non-positive values are not.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a positive integer")
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()):
            raise InvalidInputError(f"{field} must be a positive integer")
        value = int(text)
    if not isinstance(value, int):
        raise InvalidInputError(f"{field} must be a positive integer")
    if value <= 0:
        raise InvalidInputError(f"{field} must be a positive integer")
    return value


def parse_price(value: Any, field: str = "price") -> Decimal:
    """Parse a finite, non-negative price into a Decimal."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a non-negative number")
    try:
        price = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"{field} must be a non-negative number") from None
    if not price.is_finite() or price < 0:
        raise InvalidInputError(f"{field} must be a non-negative number")
    return price
