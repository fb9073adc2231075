"""Conversion between whole-unit decimals and integer base units."""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

ETH_DECIMALS = 18

# Enough digits for any uint256
_PRECISION = 100


def parse_units(value: Union[str, int, Decimal], decimals: int = ETH_DECIMALS) -> int:
    """Convert a whole-unit decimal (e.g. "1.5") into base units.

    Raises:
        ValueError: if the value is not a number, is negative, or has more
            fractional digits than the token supports
    """
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")

    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Invalid amount: {value!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount {value} has more than {decimals} decimal places")
        return int(scaled)


def format_units(value: Union[int, str], decimals: int = ETH_DECIMALS) -> str:
    """Convert base units into a whole-unit decimal string without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        amount = Decimal(int(value)).scaleb(-decimals).normalize()
    return format(amount, "f")
