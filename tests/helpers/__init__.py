"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Backends, rounding modes and digit capacities
- types: Decimal types used across the test modules
"""

from tests.helpers.constants import ALL_BACKENDS, DIGIT_CAPACITY, ROUNDING_MODES
from tests.helpers.types import (
    Balance,
    CeilingBalance,
    Price,
    Qty,
    Qty16,
    Rate,
    RawBalance,
    Small,
    Tiny,
    Wide,
)

__all__ = [
    "ALL_BACKENDS",
    "DIGIT_CAPACITY",
    "ROUNDING_MODES",
    "Balance",
    "CeilingBalance",
    "Price",
    "Qty",
    "Qty16",
    "Rate",
    "RawBalance",
    "Small",
    "Tiny",
    "Wide",
]
