"""Backend for 128-bit mantissas.

There is no 256-bit partner width, so the mul-div primitive builds the
product as two unsigned 128-bit words and runs a shift-subtract long
division until the high word is consumed. All word arithmetic is masked to
128 bits, so every intermediate value is a valid u128.
"""

from __future__ import annotations

from fpdec.backend.base import MantissaBackend, _commit, _load
from fpdec.errors import DivisionByZero, Overflow
from fpdec.rounding import CumulativeError, Rounding, trunc_div

__all__ = ["WideBackend", "mul_wide", "reduce_wide"]

WORD_BITS = 128
HALF_BITS = 64
WORD_MASK = (1 << WORD_BITS) - 1
HALF_MASK = (1 << HALF_BITS) - 1


def _leading_zeros(x: int) -> int:
    return WORD_BITS - x.bit_length()


def mul_wide(a: int, b: int) -> tuple[int, int]:
    """Multiply two u128 values into a (high, low) pair of u128 words.

    Schoolbook multiplication on 64-bit halves.
    """
    a_high, a_low = a >> HALF_BITS, a & HALF_MASK
    b_high, b_low = b >> HALF_BITS, b & HALF_MASK

    mid = a_low * b_high + a_high * b_low
    carry_mid = mid >> WORD_BITS
    mid &= WORD_MASK

    low = a_low * b_low + ((mid << HALF_BITS) & WORD_MASK)
    carry_low = low >> WORD_BITS
    low &= WORD_MASK

    high = a_high * b_high + (mid >> HALF_BITS) + (carry_mid << HALF_BITS) + carry_low
    return high, low


def reduce_wide(high: int, low: int, divisor: int) -> tuple[int, int]:
    """Divide (high, low) by divisor until the dividend fits one word.

    Returns (last_dividend, quotient) with
    ``high * 2^128 + low == quotient * divisor + last_dividend`` and
    ``last_dividend < 2^128``. The final division is left to the caller so
    it can round.

    Requires ``high < divisor``, i.e. the full quotient fits one unsigned
    word. The signed range is checked by the caller, since a magnitude of
    exactly 2^127 is valid for a negative result.

    Raises:
        Overflow: If the quotient would not fit 128 bits
    """
    if high >= divisor:
        raise Overflow("mul-div quotient exceeds 128 bits")

    if high == 0:
        return low, 0

    # Shift the remainder left by its leading zeros, pulling in the next
    # bits of the low word, and divide out one chunk of quotient each time.
    dividend = high
    total_shift = 0
    q = 0
    while True:
        zeros = _leading_zeros(dividend)
        if zeros + total_shift >= WORD_BITS:
            break
        incoming = ((low << total_shift) & WORD_MASK) >> (WORD_BITS - zeros)
        dividend = ((dividend << zeros) & WORD_MASK) | incoming
        q = ((q << zeros) & WORD_MASK) | (dividend // divisor)
        dividend %= divisor
        total_shift += zeros

    # Remaining low bits do not fill a full shift: append them unreduced
    rest = WORD_BITS - total_shift
    q = (q << rest) & WORD_MASK
    tail = ((low << total_shift) & WORD_MASK) >> total_shift
    dividend = ((dividend << rest) & WORD_MASK) | tail
    return dividend, q


class WideBackend(MantissaBackend):
    """128-bit mantissa with a long-division mul-div primitive."""

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(WORD_BITS)

    def _muldiv(self, a: int, b: int, c: int, rounding: Rounding, cum: int) -> tuple[int, int]:
        product = a * b

        # Fast path: the product fits 128 bits
        if self.fits(product):
            return self._idiv(product, c, rounding, cum)

        return self._muldiv_wide(a, b, c, rounding, cum)

    def _muldiv_wide(self, a: int, b: int, c: int, rounding: Rounding, cum: int) -> tuple[int, int]:
        if c == 0:
            raise DivisionByZero(f"Division by zero: {a} * {b} / 0")

        high, low = mul_wide(abs(a), abs(b))
        divisor = abs(c)
        last, q = reduce_wide(high, low, divisor)

        product_negative = (a < 0) != (b < 0)
        if product_negative:
            last = -last
        if product_negative != (c < 0):
            q = -q

        # Fold the carried residue into the tail, then keep the tail's
        # quotient on the same side of zero as q so the final rounding sees
        # the sign of the whole quotient.
        tail = last + cum
        carry = trunc_div(tail, c)
        q += carry
        tail -= carry * c
        if q != 0 and tail != 0 and ((tail < 0) != (c < 0)) != (q < 0):
            step = 1 if q > 0 else -1
            q -= step
            tail += step * c

        last_q, residue = self._idiv(tail, c, rounding, 0)
        return self.check(q + last_q), residue

    def muldiv_wide(
        self,
        a: int,
        b: int,
        c: int,
        rounding: Rounding = Rounding.ROUND,
        cum_error: CumulativeError | None = None,
    ) -> int:
        """Run the long-division path even when the product would fit.

        Same contract as ``muldiv``.
        """
        return _commit(self._muldiv_wide(a, b, c, rounding, _load(cum_error)), cum_error)
