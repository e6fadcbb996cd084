"""Fixed-point decimals on fixed-width integer mantissas.

This package provides decimal arithmetic with explicit rounding:
- ConstScaleFpdec: scale fixed by the type
- OobScaleFpdec: scale carried by the caller, with OobFmt for display
- Rounding, CumulativeError: rounding modes and residue carry
- I8 .. I128: mantissa backends
"""

from fpdec.backend import BACKENDS, I8, I16, I32, I64, I128, MantissaBackend, backend_for_bits
from fpdec.config import DEFAULT_CONFIG, FpdecConfig, SerializeMode
from fpdec.const_scale import ConstScaleFpdec
from fpdec.errors import (
    DivisionByZero,
    EmptyInput,
    ErrorKind,
    FpdecError,
    Inexact,
    InvalidInput,
    Overflow,
    ParseError,
    ParseInexact,
    ParseOverflow,
)
from fpdec.oob_scale import OobFmt, OobScaleFpdec
from fpdec.rounding import CumulativeError, Rounding

__version__ = "0.1.0"
__all__ = [
    # Value types
    "ConstScaleFpdec",
    "OobScaleFpdec",
    "OobFmt",
    # Rounding
    "Rounding",
    "CumulativeError",
    # Backends
    "MantissaBackend",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "BACKENDS",
    "backend_for_bits",
    # Config
    "FpdecConfig",
    "SerializeMode",
    "DEFAULT_CONFIG",
    # Errors
    "FpdecError",
    "ErrorKind",
    "Overflow",
    "Inexact",
    "DivisionByZero",
    "ParseError",
    "EmptyInput",
    "InvalidInput",
    "ParseOverflow",
    "ParseInexact",
    "__version__",
]
