"""
Quantity and cost value helpers.

Responsibility:
    Canonical scales and rounding for stock quantities (3 fractional digits)
    and costs (2 fractional digits).  ``round_quantity`` and ``round_cost`` are
    the only sanctioned rounding functions in the kernel.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    No floats anywhere in the quantity or cost path.  ``to_decimal`` refuses
    float input outright instead of silently inheriting binary error.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

QUANTITY_DECIMAL_PLACES = 3
COST_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_QUANTITY_EXPONENT = Decimal(1).scaleb(-QUANTITY_DECIMAL_PLACES)
_COST_EXPONENT = Decimal(1).scaleb(-COST_DECIMAL_PLACES)

ZERO_QUANTITY = Decimal("0.000")


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Convert an int, numeric string or Decimal to Decimal.

    Raises:
        TypeError: If ``value`` is a float or another non-numeric type.
        ValueError: If a string cannot be parsed as a number.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"Quantities and costs must not be floats (got {value!r}); "
            "pass a Decimal, int or numeric string"
        )
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid numeric value: {value!r}") from exc
    raise TypeError(f"Unsupported numeric type: {type(value).__name__}")


def round_quantity(value: Decimal | int | str) -> Decimal:
    """Quantize a stock quantity to 3 fractional digits (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(_QUANTITY_EXPONENT, rounding=DEFAULT_ROUNDING)


def round_cost(value: Decimal | int | str) -> Decimal:
    """Quantize a cost to 2 fractional digits (ROUND_HALF_UP)."""
    return to_decimal(value).quantize(_COST_EXPONENT, rounding=DEFAULT_ROUNDING)


def line_total_cost(quantity: Decimal, unit_cost: Decimal | None) -> Decimal | None:
    """Total cost of a line: unit_cost x quantity, or None without a unit cost."""
    if unit_cost is None:
        return None
    return round_cost(round_cost(unit_cost) * round_quantity(quantity))
