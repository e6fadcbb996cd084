"""Backends for the widths that have a native double-width partner (8/16/32/64 bits).

The product of two W-bit integers always fits 2W bits, so the mul-div
primitive widens to the next backend and divides there.
"""

from __future__ import annotations

from fpdec.backend.base import MantissaBackend
from fpdec.rounding import Rounding


class NativeBackend(MantissaBackend):
    """W-bit mantissa whose mul-div primitive widens to a 2W-bit backend."""

    __slots__ = ("wider",)

    def __init__(self, bits: int, wider: MantissaBackend) -> None:
        if wider.bits != 2 * bits:
            raise ValueError(f"i{bits} must widen to i{2 * bits}, got {wider.name}")
        super().__init__(bits)
        self.wider = wider

    def _muldiv(self, a: int, b: int, c: int, rounding: Rounding, cum: int) -> tuple[int, int]:
        product = a * b

        # Fast path: the product fits W bits
        if self.fits(product):
            return self._idiv(product, c, rounding, cum)

        # Wide path: divide at 2W bits, then narrow
        q, residue = self.wider._idiv(product, c, rounding, cum)
        return self.check(q), residue
