"""Score parsing, scaling, and decimal formatting.

Raw feed scores are parsed leniently: the longest leading numeric
prefix is used and anything unparseable becomes NaN. Scaled values are
rendered in the shortest round-trip decimal form, without a trailing
``.0`` on integral values, switching to exponent notation only for very
large or very small magnitudes.
"""

from __future__ import annotations

from decimal import Decimal
import math
import re

_NUMERIC_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")
_MAX_PLAIN_EXPONENT = 21
_MIN_PLAIN_EXPONENT = -6


def parse_score(raw_value: str) -> float:
    """Parse the leading numeric prefix of a score string.

    Args:
        raw_value: Raw score text.

    Returns:
        Parsed float, or NaN when no numeric prefix exists.
    """
    match = _NUMERIC_PREFIX.match(raw_value.lstrip())
    if match is None:
        return math.nan
    return float(match.group(0))


def scale_score(raw_value: str, scale_factor: float) -> str:
    """Parse, scale, and re-serialize a raw score value."""
    return format_score(parse_score(raw_value) * scale_factor)


def format_score(value: float) -> str:
    """Render a float in shortest round-trip decimal form.

    Args:
        value: Number to render.

    Returns:
        Decimal string; ``NaN``, ``Infinity`` or ``-Infinity`` for
        non-finite values.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    digits, point = _shortest_digits(abs(value))
    return sign + _layout_digits(digits, point)


def _shortest_digits(value: float) -> tuple[str, int]:
    """Return significant digits and decimal point position of a float."""
    _, digit_tuple, exponent = Decimal(repr(value)).normalize().as_tuple()
    digits = "".join(str(digit) for digit in digit_tuple)
    return digits, int(exponent) + len(digits)


def _layout_digits(digits: str, point: int) -> str:
    """Place the decimal point, or fall back to exponent notation."""
    digit_count = len(digits)
    if digit_count <= point <= _MAX_PLAIN_EXPONENT:
        return digits + "0" * (point - digit_count)
    if 0 < point <= _MAX_PLAIN_EXPONENT:
        return f"{digits[:point]}.{digits[point:]}"
    if _MIN_PLAIN_EXPONENT < point <= 0:
        return "0." + "0" * (-point) + digits
    exponent = point - 1
    exponent_sign = "+" if exponent >= 0 else "-"
    mantissa = digits if digit_count == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{mantissa}e{exponent_sign}{abs(exponent)}"
