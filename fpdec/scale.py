"""Scale algebra on raw mantissas.

Every operation here works on plain integers and takes the difference in
scale (Δ) between its operands and its result:

- mul:     Δ = S(a) + S(b) - S(result)
- div:     Δ = S(a) - S(b) - S(result)
- rescale: Δ = S(source) - S(target)
- shrink:  Δ = S(source) - S(retained)

Positive Δ divides by 10^Δ (and may round), negative Δ multiplies by 10^-Δ
(and may overflow). Powers of ten come from the backend's table, so Δ is
bounded by the backend's digit capacity D; beyond it results either
saturate to zero or overflow.

Conversions between native numbers and mantissas live here too.
"""

from __future__ import annotations

import math

from fpdec.backend.base import MantissaBackend, _commit, _load
from fpdec.errors import DivisionByZero, Inexact, Overflow, fmt_int
from fpdec.rounding import CumulativeError, Rounding

__all__ = [
    "mul",
    "div",
    "rescale",
    "shrink",
    "from_int",
    "from_float",
    "to_float",
]


def _first_step(rounding: Rounding) -> Rounding:
    """Mode for the first of two chained divisions.

    Directed modes compose exactly. Half rounding is exact only when the
    first quotient is truncated and the second divisor is a power of ten.
    """
    if rounding is Rounding.ROUND:
        return Rounding.TOWARD_ZERO
    return rounding


def mul(
    backend: MantissaBackend,
    a: int,
    b: int,
    diff_scale: int,
    rounding: Rounding = Rounding.ROUND,
    cum_error: CumulativeError | None = None,
) -> int:
    """Multiply two mantissas, producing a mantissa at the result scale.

    Args:
        backend: Width of a, b and the result
        a: Left mantissa
        b: Right mantissa
        diff_scale: S(a) + S(b) - S(result)
        rounding: Rounding mode when precision is dropped
        cum_error: Optional cumulative-error cell

    Raises:
        Overflow: If the result or an intermediate value does not fit
        Inexact: If rounding is UNEXPECTED and precision would be lost
    """
    digits = backend.digits

    if diff_scale == 0:
        return backend.checked_mul(a, b)

    if diff_scale > 0:
        if diff_scale <= digits:
            return backend.muldiv(a, b, backend.powers[diff_scale], rounding, cum_error)
        if diff_scale <= 2 * digits:
            q = backend.muldiv(a, b, backend.powers[digits], _first_step(rounding))
            return backend.idiv(q, backend.powers[diff_scale - digits], rounding, cum_error)
        # Δ > 2D: the product is dropped entirely and the result saturates to zero
        if rounding is Rounding.UNEXPECTED and a != 0 and b != 0:
            raise Inexact(f"Product loses all digits at diff_scale={diff_scale}")
        return 0

    shift = -diff_scale
    if shift > digits:
        if a == 0 or b == 0:
            return 0
        raise Overflow(f"diff_scale={diff_scale} exceeds {backend.name} capacity")
    return backend.checked_mul(backend.checked_mul(a, b), backend.powers[shift])


def div(
    backend: MantissaBackend,
    a: int,
    b: int,
    diff_scale: int,
    rounding: Rounding = Rounding.ROUND,
    cum_error: CumulativeError | None = None,
) -> int:
    """Divide two mantissas, producing a mantissa at the result scale.

    Args:
        backend: Width of a, b and the result
        a: Dividend mantissa
        b: Divisor mantissa
        diff_scale: S(a) - S(b) - S(result)
        rounding: Rounding mode
        cum_error: Optional cumulative-error cell

    Raises:
        DivisionByZero: If b is zero
        Overflow: If the result or an intermediate value does not fit
        Inexact: If rounding is UNEXPECTED and the quotient is inexact
    """
    digits = backend.digits

    if diff_scale == 0:
        return backend.idiv(a, b, rounding, cum_error)

    if diff_scale > 0:
        if diff_scale <= digits:
            exp = backend.powers[diff_scale]
            divisor = b * exp
            if backend.fits(divisor):
                return backend.idiv(a, divisor, rounding, cum_error)
            q = backend.idiv(a, b, _first_step(rounding))
            return backend.idiv(q, exp, rounding, cum_error)
        if b == 0:
            raise DivisionByZero(f"Division by zero: {a} / 0")
        if rounding is Rounding.UNEXPECTED and a != 0:
            raise Inexact(f"Quotient loses all digits at diff_scale={diff_scale}")
        return 0

    shift = -diff_scale
    if shift <= digits:
        return backend.muldiv(a, backend.powers[shift], b, rounding, cum_error)
    if shift <= 2 * digits:
        scaled = backend.checked_mul(a, backend.powers[digits])
        return backend.muldiv(scaled, backend.powers[shift - digits], b, rounding, cum_error)
    if b == 0:
        raise DivisionByZero(f"Division by zero: {a} / 0")
    if a == 0:
        return 0
    raise Overflow(f"diff_scale={diff_scale} exceeds {backend.name} capacity")


def rescale(backend: MantissaBackend, mantissa: int, diff_scale: int) -> int:
    """Move a mantissa to another scale without rounding.

    Args:
        backend: Width of the mantissa
        mantissa: Source mantissa
        diff_scale: S(source) - S(target)

    Raises:
        Inexact: If moving to a coarser scale would drop nonzero digits
        Overflow: If moving to a finer scale overflows
    """
    if diff_scale == 0 or mantissa == 0:
        return mantissa

    if diff_scale > 0:
        exp = backend.power_of_ten(diff_scale)
        if exp is None or mantissa % exp != 0:
            raise Inexact(f"Rescale by {diff_scale} drops digits of {mantissa}")
        return mantissa // exp

    exp = backend.power_of_ten(-diff_scale)
    if exp is None:
        raise Overflow(f"Rescale by {diff_scale} exceeds {backend.name} capacity")
    return backend.checked_mul(mantissa, exp)


def shrink(
    backend: MantissaBackend,
    mantissa: int,
    diff_scale: int,
    rounding: Rounding = Rounding.ROUND,
    cum_error: CumulativeError | None = None,
) -> int:
    """Round a mantissa to a multiple of 10^Δ, keeping its scale.

    Args:
        backend: Width of the mantissa
        mantissa: Source mantissa
        diff_scale: S(source) - S(retained)
        rounding: Rounding mode
        cum_error: Optional cumulative-error cell

    Raises:
        Overflow: If rounding away from zero leaves the mantissa range
        Inexact: If rounding is UNEXPECTED and digits would be dropped
    """
    if diff_scale <= 0:
        return mantissa

    if diff_scale >= backend.digits:
        if rounding is Rounding.UNEXPECTED and mantissa != 0:
            raise Inexact(f"Shrink by {diff_scale} drops all digits of {mantissa}")
        return 0

    exp = backend.powers[diff_scale]
    q, residue = backend._idiv(mantissa, exp, rounding, _load(cum_error))
    return _commit((backend.checked_mul(q, exp), residue), cum_error)


def from_int(backend: MantissaBackend, value: int, scale: int) -> int:
    """Mantissa of an integer at the given scale.

    Raises:
        TypeError: If value is not an int
        Overflow: If the scaled value does not fit
        Inexact: If scale is negative and value has nonzero digits below 10^-scale
    """
    if not isinstance(value, int):
        raise TypeError(f"Integer conversion requires int, got {type(value).__name__}")

    if scale >= 0:
        if value == 0:
            return 0
        exp = backend.power_of_ten(scale)
        if exp is None:
            raise Overflow(f"{fmt_int(value)} does not fit {backend.name} at scale {scale}")
        return backend.checked_mul(value, exp)

    if value == 0:
        return 0
    # A nonzero int has fewer decimal digits than bits
    if -scale > abs(value).bit_length():
        raise Inexact(f"Nonzero value has digits below scale {scale}")
    exp = 10**-scale
    if value % exp != 0:
        raise Inexact(f"{fmt_int(value)} has digits below scale {scale}")
    return backend.check(value // exp)


def _round_half_away(x: float) -> int:
    frac, whole = math.modf(abs(x))
    magnitude = int(whole) + (1 if frac >= 0.5 else 0)
    return -magnitude if x < 0 else magnitude


def from_float(backend: MantissaBackend, value: float, scale: int) -> int:
    """Mantissa of round(value * 10^scale), rounding half away from zero.

    Raises:
        Overflow: If value is not finite or the result does not fit
    """
    try:
        value = float(value)
    except OverflowError:
        raise Overflow(f"{type(value).__name__} value is too large for a float") from None
    if not math.isfinite(value):
        raise Overflow(f"Non-finite float {value} has no decimal value")
    if value == 0.0:
        return 0

    try:
        factor = 10.0 ** abs(scale)
    except OverflowError:
        factor = math.inf
    scaled = value * factor if scale >= 0 else value / factor
    if not math.isfinite(scaled):
        raise Overflow(f"{value} does not fit {backend.name} at scale {scale}")
    return backend.check(_round_half_away(scaled))


# Every W-bit mantissa underflows to zero past 10^-400 and overflows past 10^400
_FLOAT_SCALE_LIMIT = 400


def to_float(mantissa: int, scale: int) -> float:
    """Nearest float to mantissa * 10^-scale."""
    if mantissa == 0:
        return 0.0
    if scale > _FLOAT_SCALE_LIMIT:
        return math.copysign(0.0, mantissa)
    if scale < -_FLOAT_SCALE_LIMIT:
        return math.copysign(math.inf, mantissa)
    try:
        if scale >= 0:
            return mantissa / 10**scale
        return float(mantissa * 10**-scale)
    except OverflowError:
        return math.copysign(math.inf, mantissa)
