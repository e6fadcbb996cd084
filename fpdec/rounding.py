"""Rounding-aware integer division with cumulative-error carry.

Integer division loses the remainder. When the same rounded division is
repeated many times (fees charged on every deal of an order, interest on
every period) the lost remainders add up to a visible bias. Passing a
``CumulativeError`` cell carries each residue into the next division so the
sum of the rounded results tracks the sum of the exact ones:

    cum = CumulativeError()
    for _ in range(3):
        idiv(126_000, 10_000, Rounding.CEILING, cum)   # 13, 13, 12

For a stream of divisions by one divisor ``b`` the cell always satisfies
``sum(a) == b * sum(q) + cum.value``.
"""

from __future__ import annotations

from enum import Enum

from fpdec.errors import DivisionByZero, Inexact

__all__ = [
    "Rounding",
    "CumulativeError",
    "trunc_div",
    "rounding_div",
    "idiv",
]


class Rounding(Enum):
    """Rounding modes.

    ROUND rounds half away from zero. UNEXPECTED refuses to round and
    makes any inexact division fail with ``Inexact``.
    """

    ROUND = "round"
    FLOOR = "floor"
    CEILING = "ceiling"
    TOWARD_ZERO = "toward_zero"
    AWAY_FROM_ZERO = "away_from_zero"
    UNEXPECTED = "unexpected"

    @classmethod
    def parse(cls, name: str) -> Rounding:
        """Look up a mode by value or member name, case-insensitive.

        Raises:
            ValueError: If no mode matches
        """
        key = name.strip().lower()
        for mode in cls:
            if key in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown rounding mode: {name!r}")


class CumulativeError:
    """Caller-owned accumulator of division residues.

    The value is the part of the dividends not yet paid out in quotients,
    measured in units of the divisor's denominator. Operations only write
    to the cell when they succeed.
    """

    __slots__ = ("value",)

    def __init__(self, value: int = 0) -> None:
        self.value = value

    def reset(self) -> None:
        """Forget the accumulated residue."""
        self.value = 0

    def __repr__(self) -> str:
        return f"CumulativeError({self.value})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CumulativeError):
            return self.value == other.value
        if isinstance(other, int):
            return self.value == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]  # Mutable


def trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero.

    Python's ``//`` floors toward negative infinity, which differs from
    truncation when the operands have opposite signs.

    Raises:
        DivisionByZero: If b is zero
    """
    if b == 0:
        raise DivisionByZero(f"Division by zero: {a} / 0")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def rounding_div(a: int, b: int, rounding: Rounding, cum: int = 0) -> tuple[int, int]:
    """Divide with rounding, returning the quotient and the new residue.

    The incoming residue ``cum`` is added to the dividend before rounding,
    so ``a + cum == q * b + residue`` always holds. This function is pure
    and unbounded; width checks belong to the mantissa backends.

    Args:
        a: Dividend
        b: Divisor
        rounding: Rounding mode
        cum: Residue carried from earlier divisions

    Returns:
        Tuple of (quotient, residue)

    Raises:
        DivisionByZero: If b is zero
        Inexact: If rounding is UNEXPECTED and the division is inexact
    """
    total = a + cum
    q = trunc_div(total, b)
    r = total - q * b
    if r == 0:
        return q, 0

    # The exact quotient is negative iff the remainder and divisor differ in sign.
    negative = (r < 0) != (b < 0)
    step = -1 if negative else 1

    if rounding is Rounding.FLOOR:
        if negative:
            q -= 1
    elif rounding is Rounding.CEILING:
        if not negative:
            q += 1
    elif rounding is Rounding.TOWARD_ZERO:
        pass
    elif rounding is Rounding.AWAY_FROM_ZERO:
        q += step
    elif rounding is Rounding.ROUND:
        # 2*|r| >= |b|, written without doubling the remainder
        abs_r = abs(r)
        if abs_r >= abs(b) - abs_r:
            q += step
    else:
        raise Inexact(f"Inexact division: {total} / {b}")

    return q, total - q * b


def idiv(
    a: int,
    b: int,
    rounding: Rounding = Rounding.ROUND,
    cum_error: CumulativeError | None = None,
) -> int:
    """Divide with rounding, threading an optional cumulative-error cell.

    Unbounded: callers that need W-bit semantics use a backend's ``idiv``.

    Raises:
        DivisionByZero: If b is zero
        Inexact: If rounding is UNEXPECTED and the division is inexact
    """
    if cum_error is None:
        q, _ = rounding_div(a, b, rounding)
        return q
    q, cum_error.value = rounding_div(a, b, rounding, cum_error.value)
    return q
