"""Normalisation of numeric input into :class:`~decimal.Decimal`.

Quantities and prices arrive as strings, ints, floats or decimals. They are
converted once at the service boundary so the ledger and the sale engine only
ever compare and subtract ``Decimal`` values.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from inventory.exceptions import InvalidInput

QUANTITY_PLACES = 3
QUANTITY_DIGITS = 12
PRICE_PLACES = 2
PRICE_DIGITS = 8


def to_decimal(
    value: Any,
    field: str = "quantity",
    places: int = QUANTITY_PLACES,
    max_digits: int = QUANTITY_DIGITS,
) -> Decimal:
    """Return ``value`` as a finite ``Decimal`` or raise :class:`InvalidInput`.

    Values with more than ``places`` fractional digits are rejected rather
    than rounded, since the columns store exactly ``places`` digits.
    """

    if value is None or isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number.")
    if isinstance(value, str):
        value = value.strip()
    try:
        # str() keeps floats at their shortest repr instead of binary noise
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (TypeError, ValueError, InvalidOperation):
        raise InvalidInput(f"Invalid numeric value for {field}: {value!r}")
    if not result.is_finite():
        raise InvalidInput(f"Invalid numeric value for {field}: {value!r}")
    if result.normalize().as_tuple().exponent < -places:
        raise InvalidInput(f"{field} allows at most {places} decimal places.")
    if abs(result) >= Decimal(10) ** (max_digits - places):
        raise InvalidInput(f"{field} is too large.")
    return result


def positive_quantity(value: Any, field: str = "quantity") -> Decimal:
    qty = to_decimal(value, field)
    if qty <= 0:
        raise InvalidInput(f"{field} must be greater than 0.")
    return qty


def non_negative_quantity(value: Any, field: str = "quantity") -> Decimal:
    qty = to_decimal(value, field)
    if qty < 0:
        raise InvalidInput(f"{field} cannot be negative.")
    return qty


def price(value: Any, field: str = "sale_price") -> Decimal:
    amount = to_decimal(value, field, places=PRICE_PLACES, max_digits=PRICE_DIGITS)
    if amount < 0:
        raise InvalidInput(f"{field} cannot be negative.")
    return amount
