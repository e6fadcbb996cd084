"""Shared constants for tests.

Usage:
    from tests.helpers import ALL_BACKENDS, ROUNDING_MODES
"""

from fpdec import I8, I16, I32, I64, I128, Rounding

ALL_BACKENDS = [I8, I16, I32, I64, I128]

# Every mode that rounds instead of refusing
ROUNDING_MODES = [
    Rounding.ROUND,
    Rounding.FLOOR,
    Rounding.CEILING,
    Rounding.TOWARD_ZERO,
    Rounding.AWAY_FROM_ZERO,
]

# Digit capacity D(W): largest k with 10^k <= 2^(W-1) - 1
DIGIT_CAPACITY = {8: 2, 16: 4, 32: 9, 64: 18, 128: 38}
