"""Decimal money helpers shared by every pricing component."""
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal, str, None]

ZERO = Decimal('0.00')
CENT = Decimal('0.01')
HUNDRED = Decimal('100')

# "1234.56", "1234,56", "1 234,56" (space or NBSP as thousands separator)
NUMBER_PATTERN = re.compile(r"^-?\d+(?:[ \u00a0]\d{3})*(?:[.,]\d+)?$")


def to_decimal(value: Number) -> Decimal:
    """
    Convert an input value to Decimal without binary float noise.

    Rules:
    - None and "" are treated as zero
    - floats go through str() so 0.1 stays 0.1
    - strings accept a comma decimal separator and space-grouped thousands

    Raises:
        ValueError: if the value cannot be read as a finite number.
    """
    if value is None:
        return Decimal('0')
    if isinstance(value, bool):
        raise ValueError('Invalid number')
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return Decimal('0')
        if not NUMBER_PATTERN.match(cleaned):
            raise ValueError(f'Invalid number: {value!r}')

        normalized = cleaned.replace(' ', '').replace('\u00a0', '').replace(',', '.')
        try:
            result = Decimal(normalized)
        except (InvalidOperation, ValueError):
            raise ValueError(f'Invalid number: {value!r}')

    # NaN and infinities cannot be priced or stored
    if not result.is_finite():
        raise ValueError(f'Invalid number: {value!r}')
    return result


def round2(value: Number) -> Decimal:
    """Round half-up to the nearest cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, rate: Number) -> Decimal:
    """amount * rate / 100, unrounded."""
    return to_decimal(amount) * to_decimal(rate) / HUNDRED


def format_percent(value: Number) -> str:
    """
    Render a percentage without trailing zeros.

    Examples:
        format_percent(Decimal('15.00')) -> "15"
        format_percent(12.5) -> "12.5"
    """
    normalized = to_decimal(value).normalize()
    return f"{normalized:f}"
