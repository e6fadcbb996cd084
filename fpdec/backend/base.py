"""Mantissa backend interface.

A backend describes one signed integer width W and provides the width-bound
primitives every decimal operation is built from: range checks, checked
add/sub/mul, the powers-of-ten table and the mul-div primitive.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from fpdec.errors import Overflow, fmt_int
from fpdec.rounding import CumulativeError, Rounding, rounding_div


class MantissaBackend(ABC):
    """Capabilities of a W-bit signed mantissa.

    Attributes:
        bits: Width W of the signed integer
        name: Short name, e.g. "i64"
        min: Smallest mantissa, -2^(W-1)
        max: Largest mantissa, 2^(W-1) - 1
        digits: Digit capacity D(W), the largest k with 10^k <= max
        powers: Powers of ten 10^0 .. 10^D(W)
    """

    __slots__ = ("bits", "name", "min", "max", "digits", "powers")

    def __init__(self, bits: int) -> None:
        self.bits = bits
        self.name = f"i{bits}"
        self.min = -(1 << (bits - 1))
        self.max = (1 << (bits - 1)) - 1
        self.digits = len(str(self.max)) - 1
        self.powers = tuple(10**k for k in range(self.digits + 1))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"

    @property
    def max_power_of_ten(self) -> int:
        """Largest power of ten that fits, 10^D(W)."""
        return self.powers[self.digits]

    # --- Range checks ---

    def fits(self, value: int) -> bool:
        """True if value is a valid W-bit mantissa."""
        return self.min <= value <= self.max

    def check(self, value: int) -> int:
        """Return value if it fits, else raise.

        Raises:
            Overflow: If value is outside the W-bit range
        """
        if not self.min <= value <= self.max:
            raise Overflow(f"{fmt_int(value)} does not fit {self.name}")
        return value

    def power_of_ten(self, k: int) -> int | None:
        """10^k if 0 <= k <= D(W), else None."""
        if 0 <= k <= self.digits:
            return self.powers[k]
        return None

    # --- Checked arithmetic ---

    def checked_add(self, a: int, b: int) -> int:
        """a + b, raising Overflow outside the W-bit range."""
        return self.check(a + b)

    def checked_sub(self, a: int, b: int) -> int:
        """a - b, raising Overflow outside the W-bit range."""
        return self.check(a - b)

    def checked_mul(self, a: int, b: int) -> int:
        """a * b, raising Overflow outside the W-bit range."""
        return self.check(a * b)

    def checked_neg(self, a: int) -> int:
        """-a, raising Overflow for the most negative mantissa."""
        return self.check(-a)

    # --- Division ---

    def _idiv(self, a: int, b: int, rounding: Rounding, cum: int) -> tuple[int, int]:
        """Rounded a / b at this width, returning (quotient, residue)."""
        q, residue = rounding_div(a, b, rounding, cum)
        return self.check(q), residue

    def idiv(
        self,
        a: int,
        b: int,
        rounding: Rounding = Rounding.ROUND,
        cum_error: CumulativeError | None = None,
    ) -> int:
        """Rounded a / b whose quotient must fit W bits.

        The only signed overflow of plain division is MIN / -1.

        Raises:
            DivisionByZero: If b is zero
            Inexact: If rounding is UNEXPECTED and the division is inexact
            Overflow: If the quotient does not fit
        """
        return _commit(self._idiv(a, b, rounding, _load(cum_error)), cum_error)

    @abstractmethod
    def _muldiv(self, a: int, b: int, c: int, rounding: Rounding, cum: int) -> tuple[int, int]:
        """Rounded a * b / c without intermediate overflow, returning (quotient, residue)."""
        ...

    def muldiv(
        self,
        a: int,
        b: int,
        c: int,
        rounding: Rounding = Rounding.ROUND,
        cum_error: CumulativeError | None = None,
    ) -> int:
        """Compute round(a * b / c) with the product never overflowing.

        Args:
            a: First factor (W-bit)
            b: Second factor (W-bit)
            c: Divisor (W-bit)
            rounding: Rounding mode
            cum_error: Optional cumulative-error cell, updated on success only

        Raises:
            DivisionByZero: If c is zero
            Inexact: If rounding is UNEXPECTED and the division is inexact
            Overflow: If the quotient does not fit W bits
        """
        return _commit(self._muldiv(a, b, c, rounding, _load(cum_error)), cum_error)


def _load(cum_error: CumulativeError | None) -> int:
    return 0 if cum_error is None else cum_error.value


def _commit(result: tuple[int, int], cum_error: CumulativeError | None) -> int:
    q, residue = result
    if cum_error is not None:
        cum_error.value = residue
    return q
