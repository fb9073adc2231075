"""Packable amount and fee rounding.

zkSync stores transfer and withdrawal values in a compact decimal
floating-point form:

- amounts: 5 bytes, 35-bit mantissa and 5-bit exponent
- fees: 2 bytes, 11-bit mantissa and 5-bit exponent

value = mantissa * 10 ** exponent

Values that do not fit are rounded down to the closest packable value.
Encoding the packed form is left to the layer-2 signer.
"""

from dataclasses import dataclass

EXPONENT_BASE = 10


@dataclass(frozen=True)
class FloatFormat:
    """Bit layout of a packed decimal float."""

    name: str
    exponent_bits: int
    mantissa_bits: int

    @property
    def max_mantissa(self) -> int:
        return (1 << self.mantissa_bits) - 1

    @property
    def max_exponent(self) -> int:
        return (1 << self.exponent_bits) - 1

    @property
    def max_value(self) -> int:
        return self.max_mantissa * EXPONENT_BASE ** self.max_exponent


AMOUNT_FORMAT = FloatFormat("amount", exponent_bits=5, mantissa_bits=35)
FEE_FORMAT = FloatFormat("fee", exponent_bits=5, mantissa_bits=11)


def _to_float(value: int, fmt: FloatFormat) -> tuple[int, int]:
    """Split ``value`` into (mantissa, exponent), truncating lower digits."""
    if value < 0:
        raise ValueError(f"Packable {fmt.name} must be non-negative, got {value}")
    if value > fmt.max_value:
        raise ValueError(f"{fmt.name.capitalize()} {value} is too big to pack")

    mantissa = value
    exponent = 0
    while mantissa > fmt.max_mantissa:
        mantissa //= EXPONENT_BASE
        exponent += 1
    return mantissa, exponent


def _closest_packable(value: int, fmt: FloatFormat) -> int:
    mantissa, exponent = _to_float(int(value), fmt)
    return mantissa * EXPONENT_BASE ** exponent


def closest_packable_amount(amount: int) -> int:
    """Largest value <= ``amount`` representable as a 5-byte packed amount."""
    return _closest_packable(amount, AMOUNT_FORMAT)


def closest_packable_fee(fee: int) -> int:
    """Largest value <= ``fee`` representable as a 2-byte packed fee."""
    return _closest_packable(fee, FEE_FORMAT)


def is_packable_amount(amount: int) -> bool:
    return closest_packable_amount(amount) == amount


def is_packable_fee(fee: int) -> bool:
    return closest_packable_fee(fee) == fee


def _closest_greater_or_equal_packable(value: int, fmt: FloatFormat) -> int:
    mantissa, exponent = _to_float(int(value), fmt)
    if mantissa * EXPONENT_BASE ** exponent == value:
        return value

    mantissa += 1
    if mantissa > fmt.max_mantissa:
        mantissa = -(-mantissa // EXPONENT_BASE)
        exponent += 1
    if exponent > fmt.max_exponent:
        raise ValueError(f"{fmt.name.capitalize()} {value} is too big to pack")
    return mantissa * EXPONENT_BASE ** exponent


def closest_greater_or_equal_packable_fee(fee: int) -> int:
    """Smallest value >= ``fee`` representable as a 2-byte packed fee.

    Used for network fee quotes, which must not be undercut.
    """
    return _closest_greater_or_equal_packable(fee, FEE_FORMAT)
