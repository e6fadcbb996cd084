"""Mantissa backends, one per signed integer width.

This package provides the width-specific primitives the decimal types are
built on:
- I8, I16, I32, I64: widen to the next width for mul-div
- I128: 256-bit product and long division for mul-div
"""

from fpdec.backend.base import MantissaBackend
from fpdec.backend.native import NativeBackend
from fpdec.backend.wide import WideBackend

I128 = WideBackend()
I64 = NativeBackend(64, I128)
I32 = NativeBackend(32, I64)
I16 = NativeBackend(16, I32)
I8 = NativeBackend(8, I16)

BACKENDS: dict[int, MantissaBackend] = {b.bits: b for b in (I8, I16, I32, I64, I128)}


def backend_for_bits(bits: int) -> MantissaBackend:
    """Return the backend for a mantissa width.

    Raises:
        ValueError: If no backend has that width
    """
    try:
        return BACKENDS[bits]
    except KeyError:
        raise ValueError(f"No mantissa backend for {bits} bits (expected one of {sorted(BACKENDS)})") from None


__all__ = [
    "MantissaBackend",
    "NativeBackend",
    "WideBackend",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "BACKENDS",
    "backend_for_bits",
]
