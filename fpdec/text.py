"""Decimal string parsing and formatting.

Accepted input is ``[+-]digits[.digits]``, ``[+-]digits.`` or
``[+-].digits`` (ASCII digits only). Scientific notation, whitespace,
thousands separators and locale-specific marks are rejected.

Parsing is exact: a string with more fractional digits than the target
scale is ``Inexact``, never rounded. Formatting optionally rounds to a
display precision using any rounding mode.
"""

from __future__ import annotations

import re

from fpdec.backend.base import MantissaBackend
from fpdec.errors import EmptyInput, InvalidInput, ParseInexact, ParseOverflow
from fpdec.rounding import Rounding, rounding_div

__all__ = ["DECIMAL_PATTERN", "parse_decimal", "parse_guess_scale", "format_decimal"]

# Full grammar, for schemas and documentation
DECIMAL_PATTERN = r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)$"

_BODY_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?", re.ASCII)


def _split(text: str) -> tuple[bool, str, str]:
    """Split input into (negative, integer digits, fraction digits)."""
    if not isinstance(text, str):
        raise TypeError(f"Decimal string expected, got {type(text).__name__}")

    negative = text.startswith("-")
    body = text[1:] if text[:1] in ("+", "-") else text
    if body in ("", "."):
        raise EmptyInput(f"No digits in {text!r}")

    match = _BODY_RE.fullmatch(body)
    if match is None:
        raise InvalidInput(f"Invalid decimal string {text!r}")
    return negative, match.group(1), match.group(2) or ""


def _shifted(digits: str, shift: int, backend: MantissaBackend) -> int:
    """int(digits) * 10^shift, rejecting magnitudes with more digits than W holds."""
    digits = digits.lstrip("0")
    if not digits:
        return 0
    if len(digits) + shift > backend.digits + 1:
        raise ParseOverflow(f"{digits}e{shift} does not fit {backend.name}")
    return int(digits) * 10**shift


def _signed(negative: bool, magnitude: int, backend: MantissaBackend) -> int:
    value = -magnitude if negative else magnitude
    if not backend.fits(value):
        raise ParseOverflow(f"{value} does not fit {backend.name}")
    return value


def parse_decimal(text: str, backend: MantissaBackend, scale: int) -> int:
    """Parse a decimal string into a mantissa at the given scale.

    With a negative scale the last -scale integer digits must be zeros and
    no fractional digits may be present.

    Args:
        text: Decimal string
        backend: Mantissa width
        scale: Target scale

    Returns:
        Mantissa m with text == m * 10^-scale

    Raises:
        EmptyInput: If the input has no digits
        InvalidInput: If the input is malformed
        ParseOverflow: If the value does not fit the backend at this scale
        ParseInexact: If the input has digits below the scale's precision
    """
    negative, int_digits, frac_digits = _split(text)

    if scale >= 0:
        if len(frac_digits) > scale:
            raise ParseInexact(f"{text!r} has more than {scale} fractional digits")
        magnitude = _shifted(int_digits, scale, backend) + _shifted(
            frac_digits, scale - len(frac_digits), backend
        )
        return _signed(negative, magnitude, backend)

    if frac_digits:
        raise ParseInexact(f"{text!r} has fractional digits at scale {scale}")
    drop = -scale
    head, tail = int_digits[:-drop], int_digits[-drop:]
    if tail.strip("0"):
        raise ParseInexact(f"{text!r} has nonzero digits below 10^{drop}")
    return _signed(negative, _shifted(head, 0, backend), backend)


def parse_guess_scale(text: str, backend: MantissaBackend) -> tuple[int, int]:
    """Parse a decimal string, inferring the scale from its digits.

    The scale is the number of significant fractional digits. An integer
    that does not fit is retried with its trailing zeros moved into a
    negative scale.

    Returns:
        Tuple of (mantissa, scale)

    Raises:
        EmptyInput: If the input has no digits
        InvalidInput: If the input is malformed
        ParseInexact: If the value has a nonzero integer part and more
            fractional digits than the backend can hold
        ParseOverflow: If the significant digits do not fit
    """
    negative, int_digits, frac_digits = _split(text)
    int_digits = int_digits.lstrip("0")
    frac_digits = frac_digits.rstrip("0")
    capacity = backend.digits + 1

    if frac_digits:
        scale = len(frac_digits)
        significant = (int_digits + frac_digits).lstrip("0")
        if len(significant) <= capacity:
            value = -int(significant) if negative else int(significant)
            if backend.fits(value):
                return value, scale
        if int_digits and scale > backend.digits:
            raise ParseInexact(f"{text!r} has more fractional digits than {backend.name} holds")
        raise ParseOverflow(f"{text!r} does not fit {backend.name}")

    if not int_digits:
        return 0, 0

    if len(int_digits) <= capacity:
        value = -int(int_digits) if negative else int(int_digits)
        if backend.fits(value):
            return value, 0

    significant = int_digits.rstrip("0")
    if len(significant) > capacity:
        raise ParseOverflow(f"{text!r} does not fit {backend.name}")
    return _signed(negative, int(significant), backend), len(significant) - len(int_digits)


def format_decimal(
    mantissa: int,
    scale: int,
    precision: int | None = None,
    rounding: Rounding = Rounding.ROUND,
) -> str:
    """Format mantissa * 10^-scale as a decimal string.

    Without a precision, trailing fractional zeros are dropped (and the
    point with them). With one, exactly that many fractional digits are
    written, rounding by ``rounding`` when the scale holds more.

    Raises:
        ValueError: If precision is negative
        Inexact: If rounding is UNEXPECTED and digits would be dropped
    """
    if precision is not None and precision < 0:
        raise ValueError(f"precision must be non-negative, got {precision}")

    if scale <= 0:
        text = str(mantissa) + "0" * -scale if mantissa else "0"
        if precision:
            text += "." + "0" * precision
        return text

    if precision is not None and precision < scale:
        # Any divisor above 10 * |mantissa| rounds the same way
        drop = min(scale - precision, len(str(abs(mantissa))) + 1)
        mantissa, _ = rounding_div(mantissa, 10**drop, rounding)
        scale = precision
        if scale == 0:
            return str(mantissa)

    sign = "-" if mantissa < 0 else ""
    digits = str(abs(mantissa)).rjust(scale + 1, "0")
    int_part, frac_part = digits[:-scale], digits[-scale:]
    if precision is None:
        frac_part = frac_part.rstrip("0")
    else:
        frac_part = frac_part.ljust(precision, "0")

    if frac_part:
        return f"{sign}{int_part}.{frac_part}"
    return f"{sign}{int_part}"
